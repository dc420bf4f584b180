"""
Domain package for SQLite Entity.

Exports the semantic type enumeration and the record type descriptors the
schema compiler and data context operate on. Keep this package free of I/O.
"""

from sqlite_entity.domain.descriptor import (
    PRIMARY_KEY,
    FieldDescriptor,
    RecordDescriptor,
    describe,
    entity,
)
from sqlite_entity.domain.semantic import (
    Boolean,
    Float32,
    Float64,
    Int32,
    Int64,
    SemanticType,
    StorageClass,
    Text,
    Timestamp,
    UInt32,
    UInt64,
)

__all__ = [
    "PRIMARY_KEY",
    "FieldDescriptor",
    "RecordDescriptor",
    "describe",
    "entity",
    "SemanticType",
    "StorageClass",
    "Boolean",
    "Float32",
    "Float64",
    "Int32",
    "Int64",
    "Text",
    "Timestamp",
    "UInt32",
    "UInt64",
]
