"""
Logging helpers for attendance sync.

Every component logs under ``attendance_sync.<component>``. Long-running
clients can switch the package logger to one JSON object per line with
``configure_structured_logging``; fields passed via ``extra`` (or bound
with ``StoreLoggerAdapter``) become top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredJsonFormatter(logging.Formatter):
    """Render records as single-line JSON.

    Keys: ``timestamp`` (UTC, ISO 8601), ``level``, ``logger``,
    ``message``, ``exception`` when present, then any extra fields.
    Extra values that are not JSON-serializable are rendered with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_extra_fields(record))
        return json.dumps(entry, default=str)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = str(value)
        fields[key] = value
    return fields


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = "attendance_sync",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Send a logger's output to a stream as structured JSON.

    Existing handlers on that logger are replaced.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure, None for the root logger
        stream: Output stream (default: stdout)
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_store_logger(name: str) -> logging.Logger:
    """Return the logger for a component, e.g. 'store' or 'migration'."""
    return logging.getLogger(f"attendance_sync.{name}")


class StoreLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that binds context fields to every record.

    Fields given per call via ``extra`` are kept; bound fields win on
    conflicts.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **(self.extra or {})}
        return msg, kwargs
