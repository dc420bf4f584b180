"""
SQLite Entity - a minimal object-relational mapper for SQLite.

Give it a pydantic model or a dataclass and it will:

- create the table named after the class on first use,
- add columns as the class gains fields (never dropping any),
- insert, select, update and delete typed records, converting booleans,
  timestamps and missing values consistently in both directions.

No schema definition step is needed beyond declaring the record type.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sqlite_entity.compiler import BindParameter
from sqlite_entity.config import Settings, get_settings
from sqlite_entity.context import DataContext
from sqlite_entity.domain import (
    Boolean,
    Float32,
    Float64,
    Int32,
    Int64,
    RecordDescriptor,
    SemanticType,
    Text,
    Timestamp,
    UInt32,
    UInt64,
    describe,
    entity,
)
from sqlite_entity.errors import (
    DataIntegrityError,
    SchemaError,
    SQLiteEntityError,
    StoreError,
    UnsupportedTypeError,
)
from sqlite_entity.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Mapper
    "DataContext",
    "BindParameter",
    # Record types
    "entity",
    "describe",
    "RecordDescriptor",
    "SemanticType",
    "Boolean",
    "Float32",
    "Float64",
    "Int32",
    "Int64",
    "Text",
    "Timestamp",
    "UInt32",
    "UInt64",
    # Errors
    "SQLiteEntityError",
    "SchemaError",
    "UnsupportedTypeError",
    "DataIntegrityError",
    "StoreError",
    # Logging
    "configure_logging",
    "get_logger",
]
