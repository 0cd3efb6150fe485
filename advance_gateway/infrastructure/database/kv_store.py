"""Key-value storage backends"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, sessionmaker

from advance_gateway.domain.exceptions import StoreUnavailableError
from advance_gateway.infrastructure.database.models import KVEntry

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


class KeyValueStore(ABC):
    """
    Durable mapping from string key to a JSON-compatible value.

    Absent keys are reported as None. Transient failures raise
    StoreUnavailableError and must never be read as "absent".
    """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Write value, overwriting unconditionally"""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Stored value, or None"""
        pass

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> List[Any]:
        """All values whose key starts with prefix, in no particular order"""
        pass

    @abstractmethod
    def add(self, key: str, value: Any) -> bool:
        """Write value only if key is absent. Returns False if it already existed."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store for tests and local runs; values are copied in and out"""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def get_by_prefix(self, prefix: str) -> List[Any]:
        with self._lock:
            return [copy.deepcopy(v) for k, v in self._data.items() if k.startswith(prefix)]

    def add(self, key: str, value: Any) -> bool:
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = copy.deepcopy(value)
            return True

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the kv_store table; one short session per operation"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str, key: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except TRANSIENT_ERRORS as e:
            session.rollback()
            logger.warning(f"Store {operation} failed: {e}", extra={"key": key, "operation": operation})
            raise StoreUnavailableError(f"Key-value store unavailable during {operation}") from e
        finally:
            session.close()

    def set(self, key: str, value: Any) -> None:
        with self._session("set", key) as session:
            session.merge(KVEntry(key=key, value=value))
            session.commit()

    def get(self, key: str) -> Optional[Any]:
        with self._session("get", key) as session:
            entry = session.get(KVEntry, key)
            return entry.value if entry is not None else None

    def get_by_prefix(self, prefix: str) -> List[Any]:
        with self._session("get_by_prefix", prefix) as session:
            rows = session.execute(
                select(KVEntry.key, KVEntry.value).where(KVEntry.key.startswith(prefix, autoescape=True))
            )
            # SQLite LIKE ignores ASCII case
            return [value for key, value in rows if key.startswith(prefix)]

    def add(self, key: str, value: Any) -> bool:
        with self._session("add", key) as session:
            session.add(KVEntry(key=key, value=value))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return False
            return True
