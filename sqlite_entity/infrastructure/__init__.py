"""
Infrastructure package for SQLite Entity.

Centralizes database connectivity concerns (connection acquisition and
release). Keep this layer focused on I/O and resource management, decoupled
from schema compilation and marshalling.
"""

from sqlite_entity.infrastructure.db_factory import open_connection, resolve_db_path

__all__ = [
    "open_connection",
    "resolve_db_path",
]
