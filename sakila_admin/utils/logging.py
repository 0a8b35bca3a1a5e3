"""
Structured logging utilities for the Sakila admin console.

The CLI, the API server and the data layer all log through the standard
library, configured once by `configure_logging`. Context travels in
`extra={...}` fields (table, page, view, duration_ms, ...); both formatters
render those fields, the console one as trailing `key=value` pairs and the
JSON one as top-level keys.

Fields whose name suggests a credential (password, dsn, api key) are
masked before any formatter sees them, so a careless `extra=` can't leak
the database password or the admin key into a log collector.

Usage:
    from sakila_admin.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("Page fetched", extra={"table": "film", "rows": 25})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Mapping, Optional

REDACTED = "***"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime", "extra"}

_SECRET_MARKERS = ("password", "secret", "dsn", "api_key", "apikey", "x-api-key", "token")

# Third-party loggers that are noisy at INFO; the request middleware already
# logs one line per request.
DEFAULT_LOGGER_LEVELS: Mapping[str, str] = {
    "uvicorn.access": "WARNING",
    "asyncio": "WARNING",
}


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through `extra=`, flat or as a nested `extra` dict."""
    fields = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    payload.update(_extra_fields(record))
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, extras promoted to top-level keys."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line followed by the record's extra fields as key=value."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        fields = _extra_fields(record)
        if not fields:
            return line
        context = " ".join(f"{key}={value}" for key, value in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} | {context}{sep}{tail}"


class RedactSecretsFilter(logging.Filter):
    """Mask extra fields that look like credentials."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in list(record.__dict__):
            if key not in _RESERVED_ATTRS and _is_secret(key):
                setattr(record, key, REDACTED)
        nested = getattr(record, "extra", None)
        if isinstance(nested, dict):
            record.extra = {k: (REDACTED if _is_secret(k) else v) for k, v in nested.items()}
        return True


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    logger_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Whether to emit logs as JSON. If False, uses the console formatter.
    logger_levels : mapping | None
        Per-logger level overrides; defaults to `DEFAULT_LOGGER_LEVELS`.
    """
    formatter_name = "json" if json_logs else "console"
    overrides = DEFAULT_LOGGER_LEVELS if logger_levels is None else logger_levels

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "redact": {"()": RedactSecretsFilter},
            },
            "formatters": {
                "console": {
                    "()": ConsoleFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "filters": ["redact"],
                    "level": level,
                }
            },
            "loggers": {name: {"level": value} for name, value in overrides.items()},
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = [
    "ConsoleFormatter",
    "DEFAULT_LOGGER_LEVELS",
    "JsonFormatter",
    "RedactSecretsFilter",
    "configure_logging",
    "get_logger",
]
