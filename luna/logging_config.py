"""
Logging setup for the Luna API.

Records carry the current request id and, once a bearer token has been
accepted, the caller's user id. Both come from context variables so any
module can log through a plain ``logging.getLogger(__name__)``.

In production every record is one JSON object per line; elsewhere a compact
human-readable line is used. Credential-looking fields passed via ``extra=``
never reach the output.

Usage:
    from luna.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Dream saved", extra={"dream_id": dream.id})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

REDACTED = "[redacted]"
SENSITIVE_FIELDS = frozenset((
    "password",
    "current_password",
    "new_password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "api_key",
))

# Attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "request_id", "user_id"}

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai")


class LogContextFilter(logging.Filter):
    """Stamp request_id and user_id from the current context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields supplied via extra=, with credentials masked."""
    extras = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS or key.startswith("_") or value is None:
            continue
        extras[key] = REDACTED if key.lower() in SENSITIVE_FIELDS else value
    return extras


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("request_id", "user_id"):
            value = getattr(record, key, "-")
            if value != "-":
                entry[key] = value

        entry.update(record_extras(record))

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single readable line; extras appended as key=value."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return line


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install the root handler. Safe to call more than once.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        environment: 'production' switches to JSON output
        debug: Forces DEBUG regardless of log_level
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout if environment == "production" else sys.stderr)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
