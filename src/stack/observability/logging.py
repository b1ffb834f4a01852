"""Log formatting for media storage.

Every record is enriched with the request and correlation IDs set by
``CorrelationMiddleware`` and, when the caller passes them through
``extra``, the backend and blob key the message is about:

    logger.warning(
        "unlink failed",
        extra={"storage_type": "gcs", "blob_key": "wp-content/uploads/a.jpg"},
    )

JSON output is meant for log aggregation in production; the console
format is a single readable line for development.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Record attributes media code attaches via ``extra``
MEDIA_FIELDS = ("storage_type", "blob_key")


def log_context(record: logging.LogRecord) -> dict[str, str]:
    """Collect correlation IDs and media fields for a record, skipping empty ones."""
    context = {
        "request_id": request_id_var.get(),
        "correlation_id": correlation_id_var.get(),
    }
    for name in MEDIA_FIELDS:
        context[name] = str(getattr(record, name, "") or "")
    return {name: value for name, value in context.items() if value}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {"timestamp": "...", "level": "WARNING", "logger": "stack.media.stream",
     "message": "unlink failed ...", "request_id": "...", "storage_type": "gcs",
     "blob_key": "wp-content/uploads/a.jpg"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(log_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """``12:34:56 WARNING  stack.media.stream: unlink failed [blob_key=... request_id=...]``"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{timestamp} {record.levelname:8} {record.name}: {record.getMessage()}"
        context = log_context(record)
        if context:
            line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        json_format: Emit JSON lines instead of the console format
        level: Root log level name
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level.upper())

    # Client libraries are chatty at INFO
    for name in ("google.auth", "urllib3", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
