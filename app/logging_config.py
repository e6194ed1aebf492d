"""JSON logging for the Sprout support API.

Every record is one JSON object per line on stdout. Structured fields travel in
``extra={"context": {...}}``; keys that can carry credentials are masked before
they are written.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

REDACTED = "***"

# Matched case-insensitively against context keys, at any nesting depth.
SECRET_KEY_MARKERS = ("token", "authorization", "secret", "password")

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def is_secret_key(key: str) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SECRET_KEY_MARKERS)


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with secret-looking keys masked."""
    if isinstance(value, dict):
        return {key: REDACTED if is_secret_key(key) else redact(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = redact(context)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Datetimes and enums in context fall back to str().
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Route the root logger to a single JSON handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"sprout.{name}")
