"""
Exception hierarchy for SQLite Entity.

Every error the mapper raises derives from `SQLiteEntityError`, so callers can
catch the whole family at once. None of these are retried internally.
"""

from __future__ import annotations

from typing import Any, Optional


class SQLiteEntityError(Exception):
    """Base class for all mapper errors."""


class SchemaError(SQLiteEntityError):
    """
    A structural precondition of a record type is not met.

    Examples: no `id` field for update/delete, two fields that both normalize
    to `id`, a name that is not a plain SQL identifier.
    """


class UnsupportedTypeError(SchemaError):
    """A record field is annotated with a type that has no storage class."""

    def __init__(self, type_name: str, field_name: Optional[str] = None) -> None:
        self.type_name = type_name
        self.field_name = field_name
        where = f" (field '{field_name}')" if field_name else ""
        super().__init__(f"Unsupported field type '{type_name}'{where}")


class DataIntegrityError(SQLiteEntityError):
    """A value does not fit its semantic type, either as stored or about to be written."""

    def __init__(self, message: str, table: str = "", column: str = "", value: Any = None) -> None:
        self.table = table
        self.column = column
        self.value = value
        super().__init__(message)


class StoreError(SQLiteEntityError):
    """
    The underlying SQLite engine rejected a statement or failed to run it.

    The original driver exception is chained as `__cause__`.
    """

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        self.sql = sql
        super().__init__(message)


__all__ = [
    "SQLiteEntityError",
    "SchemaError",
    "UnsupportedTypeError",
    "DataIntegrityError",
    "StoreError",
]
