"""JSON console logging shared by the API server, uvicorn and the lookup CLI."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_for_logging, sanitize_text

LOGGER_NAME = "weather_lookup"


class JsonConsoleFormatter(logging.Formatter):
    """One redacted JSON object per record.

    Structured context passed as ``extra={"fields": {...}}`` is emitted under
    ``fields``.
    """

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict) and fields:
            event["fields"] = sanitize_for_logging(fields)
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(name: str = LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """Return the process logger with a single JSON stream handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonConsoleFormatter())
        logger.addHandler(handler)
    return logger


def uvicorn_log_config(level: str = "INFO") -> dict[str, Any]:
    """``logging.config`` dict that puts uvicorn's own loggers on the JSON format."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JsonConsoleFormatter}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json"},
        },
        "loggers": {
            "uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }
