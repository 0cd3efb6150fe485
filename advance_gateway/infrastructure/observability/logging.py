"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from advance_gateway.config import settings

# timestamp, level and service are filled in by CustomJsonFormatter
LOG_FORMAT = "%(timestamp)s %(level)s %(service)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    logger.addHandler(handler)


def log_transition(
    event: str,
    owner_id: str,
    entity_id: str,
    **fields: Any,
) -> None:
    """Log a lifecycle state change for audit and analysis"""
    logging.info(
        event,
        extra={
            "step": event.lower().replace(" ", "_"),
            "owner_id": owner_id,
            "entity_id": entity_id,
            **fields,
        },
    )
