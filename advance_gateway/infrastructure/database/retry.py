"""Exponential backoff for transient key-value store failures"""

import logging
import time
from typing import Callable, Optional, TypeVar

from advance_gateway.config import settings
from advance_gateway.domain.exceptions import StoreUnavailableError
from advance_gateway.infrastructure.observability.metrics import store_retry_counter

T = TypeVar("T")


class StoreRetryPolicy:
    """
    Retry store calls that raise StoreUnavailableError.

    Retry strategy:
    - Exponential backoff: base, 2*base, 4*base, ... (base * 2^(attempt-1))
    - Only StoreUnavailableError is retried; every store write is keyed, so
      repeating it is safe
    - Re-raises the last failure once max_retries attempts are spent
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries or settings.store_max_retries
        self.backoff_base = settings.store_backoff_base if backoff_base is None else backoff_base
        self.sleep = sleep

    def call(self, operation: Callable[[], T], description: str) -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except StoreUnavailableError:
                attempt += 1
                store_retry_counter.labels(operation=description).inc()

                if attempt >= self.max_retries:
                    logging.error(
                        "Store operation failed after retries",
                        extra={"operation": description, "attempts": attempt},
                    )
                    raise

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(
                    "Store operation failed, retrying",
                    extra={"operation": description, "attempt": attempt, "backoff_seconds": backoff},
                )
                self.sleep(backoff)
