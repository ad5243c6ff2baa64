"""Structured logging for OpenFlow.

Services log through :func:`get_logger` and pass structured fields as
``data={...}``. Both formatters scrub that data before writing it:
credentials are replaced and recipient addresses are masked.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Request-scoped fields set by RequestContextMiddleware
request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})

SENSITIVE_KEYS: set[str] = {
    "password",
    "smtp_password",
    "token",
    "secret",
    "authorization",
}

EMAIL_KEYS: set[str] = {"email", "to_email", "recipient"}

# Lifted out of ``data`` to top-level JSON keys so log queries can filter on them.
CORRELATION_KEYS: tuple[str, ...] = ("board_id", "user_id", "actor_id", "entity_type", "entity_id")

REDACTED = "<REDACTED>"

_EMAIL_PATTERN = re.compile(r"^([^@\s]+)@([^@\s]+)$")


def mask_email(value: str) -> str:
    """``alice@example.com`` becomes ``a***@example.com``."""
    match = _EMAIL_PATTERN.match(value)
    if not match:
        return REDACTED
    local, domain = match.groups()
    return f"{local[0]}***@{domain}"


def _scrub(key: str, value: Any) -> Any:
    name = key.lower()
    if name in SENSITIVE_KEYS:
        return REDACTED
    if name in EMAIL_KEYS and isinstance(value, str):
        return mask_email(value)
    return redact_sensitive_data(value)


def redact_sensitive_data(data: Any) -> Any:
    """Recursively scrub credentials and recipient addresses from a log payload."""
    if isinstance(data, dict):
        return {key: _scrub(str(key), value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data


def _context() -> dict[str, Any]:
    return request_context.get() or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "method", "path"):
            if ctx.get(key):
                entry[key] = ctx[key]

        data = getattr(record, "data", None)
        if data:
            scrubbed = redact_sensitive_data(data)
            for key in CORRELATION_KEYS if isinstance(scrubbed, dict) else ():
                if scrubbed.get(key) is not None:
                    entry[key] = scrubbed[key]
            entry["data"] = scrubbed

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for local development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        color = self.LEVEL_COLORS.get(record.levelname, "")
        request_id = str(_context().get("request_id", "-"))[:8]

        parts = [
            stamp,
            f"{color}{record.levelname:8}{self.RESET}",
            request_id,
            record.name,
            record.getMessage(),
        ]
        data = getattr(record, "data", None)
        if data:
            parts.append(str(redact_sensitive_data(data)))

        line = " | ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter accepting ``data=`` for structured fields."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        data = kwargs.pop("data", None)
        if data is not None:
            kwargs["extra"] = {**kwargs.get("extra", {}), "data": data}
        return msg, kwargs


_loggers: dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = ContextLogger(logging.getLogger(name), {})
    return logger


# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """Install stdout (and optionally file) handlers on the root logger.

    The file sink is always JSON so it can be shipped as-is.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(StructuredFormatter() if json_output else ConsoleFormatter())
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers[:] = handlers

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
