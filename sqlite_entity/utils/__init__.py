"""
Utilities package for SQLite Entity: logging setup shared by the data
context, the connection factory and the CLI.
"""

from sqlite_entity.utils.logging import (
    ConsoleFormatter,
    JsonFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "ConsoleFormatter",
    "JsonFormatter",
]
