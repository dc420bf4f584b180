"""
Logging setup for SQLite Entity.

Every module logs through a child of the `sqlite_entity` logger and attaches
the statement context (table, column, row counts, database path) with
`extra=`. `configure_logging` installs one handler on that package logger
only, so an application embedding the mapper keeps its own root setup.

Two renderings are available:
- console: `time | level | logger | message` followed by the context as
  `key=value` pairs,
- JSON: one object per record with the context promoted to top-level keys.

Usage:
    from sqlite_entity.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("[ADD COLUMN] Human.Age", extra={"table": "Human", "column": "Age"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "sqlite_entity"

# context keys shown by the console formatter, in this order
CONTEXT_KEYS = ("table", "column", "rows", "row_id", "db_path")

_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the values a caller attached through `extra=`."""
    fields = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
        **_context_fields(record),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the mapper context appended."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _context_fields(record)
        context = " ".join(f"{key}={fields[key]}" for key in CONTEXT_KEYS if key in fields)
        return f"{line} | {context}" if context else line


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Route the package logger to stderr.

    Parameters
    ----------
    level : str
        Logging level name. DEBUG also shows every executed statement and
        each connection open/close.
    json_logs : bool
        Emit JSON objects instead of console lines.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"()": ConsoleFormatter},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "sqlite_entity": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                }
            },
            "loggers": {
                PACKAGE_LOGGER: {
                    "handlers": ["sqlite_entity"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for `name`, or the package logger when no name is given.
    """
    return logging.getLogger(name or PACKAGE_LOGGER)


__all__ = ["configure_logging", "get_logger", "ConsoleFormatter", "JsonFormatter"]
