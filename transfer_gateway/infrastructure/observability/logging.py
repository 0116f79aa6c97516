"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from transfer_gateway.config import settings

# Never emitted, even if a caller passes them through `extra`
REDACTED_FIELDS = {"authorization_secret", "secret", "pin"}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name
        for name in REDACTED_FIELDS & log_record.keys():
            log_record[name] = "***"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_submission(
    request_id: str,
    session_id: str,
    outcome: str,
    category: Optional[str],
    error_kind: Optional[str],
    duration_ms: float,
) -> None:
    """Log structured submission outcome for analysis"""
    logging.info(
        "Transfer submission completed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "submission_complete",
            "submission_outcome": outcome,
            "transfer_category": category,
            "error_kind": error_kind,
            "duration_ms": duration_ms,
        },
    )


def log_step_transition(request_id: str, session_id: str, operation: str, from_step: str, to_step: str) -> None:
    logging.info(
        "Wizard navigation",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "operation": operation,
            "from_step": from_step,
            "to_step": to_step,
        },
    )
