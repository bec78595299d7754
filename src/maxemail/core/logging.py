"""Logging configuration for the Maxemail transfer client."""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

# Context variable for correlating log lines of one transfer
transfer_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "transfer_id", default=None
)

_STANDARD_RECORD_FIELDS = frozenset([
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "getMessage", "taskName",
])


class JsonLogFormatter(logging.Formatter):
    """JSON formatter for structured log collection.

    Formats log records as single-line JSON objects. Fields passed through
    ``extra={...}`` (``fileKey``, ``type``, ``primaryId``, ``path``...) are
    kept as top-level keys so transfer events can be correlated.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as single-line JSON.

        Args:
            record: Log record to format

        Returns:
            Single-line JSON string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        transfer_id = transfer_id_context.get()
        if transfer_id:
            log_entry["transfer_id"] = transfer_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS:
                log_entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            log_entry["exception"] = "".join(traceback.format_exception(*record.exc_info))
            log_entry["exception_type"] = type(error).__name__
            log_entry["exception_message"] = str(error)
            # LocalIOError and friends carry the OS-reported reason
            reason = getattr(error, "reason", None)
            if reason:
                log_entry["exception_reason"] = reason

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Configure structured logging for applications embedding the client.

    Local environments get a plain text format at DEBUG, anything else gets
    one JSON object per line at the configured LOG_LEVEL.
    """
    from maxemail.core.config import settings

    if settings.ENV == "local":
        log_level = logging.DEBUG
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        log_level = logging.getLevelName(settings.LOG_LEVEL.upper())
        formatter = JsonLogFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Keep HTTP transport chatter on the same handler
    for logger_name in ["httpx", "httpcore"]:
        transport_logger = logging.getLogger(logger_name)
        transport_logger.setLevel(max(log_level, logging.INFO))
        transport_logger.handlers.clear()
        transport_logger.addHandler(handler)
        transport_logger.propagate = False
