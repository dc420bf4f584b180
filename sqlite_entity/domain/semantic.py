"""
Semantic types understood by the mapper and their SQLite storage classes.

Plain annotations map as follows: `int` -> INT64, `bool` -> BOOLEAN,
`float` -> FLOAT64, `str` -> TEXT, `datetime` -> TIMESTAMP. The narrower and
unsigned kinds are declared with the `Annotated` aliases below:

    @entity
    class Reading(BaseModel):
        id: int = 0
        sensor: UInt32 = 0
        value: Float32 = 0.0
"""

from __future__ import annotations

import enum
import types
from datetime import datetime
from typing import Annotated, Any, Dict, Optional, Tuple, Union, get_args, get_origin


class SemanticType(str, enum.Enum):
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    BOOLEAN = "boolean"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    TEXT = "text"
    TIMESTAMP = "timestamp"


class StorageClass(str, enum.Enum):
    INTEGER = "INTEGER"
    REAL = "REAL"
    TEXT = "TEXT"


STORAGE_CLASSES: Dict[SemanticType, StorageClass] = {
    SemanticType.INT32: StorageClass.INTEGER,
    SemanticType.UINT32: StorageClass.INTEGER,
    SemanticType.INT64: StorageClass.INTEGER,
    SemanticType.UINT64: StorageClass.INTEGER,
    SemanticType.BOOLEAN: StorageClass.INTEGER,
    SemanticType.FLOAT32: StorageClass.REAL,
    SemanticType.FLOAT64: StorageClass.REAL,
    SemanticType.TEXT: StorageClass.TEXT,
    SemanticType.TIMESTAMP: StorageClass.TEXT,
}

# Inclusive bounds. SQLite stores INTEGER as signed 64-bit, which caps UINT64.
INTEGER_RANGES: Dict[SemanticType, Tuple[int, int]] = {
    SemanticType.INT32: (-(2**31), 2**31 - 1),
    SemanticType.UINT32: (0, 2**32 - 1),
    SemanticType.INT64: (-(2**63), 2**63 - 1),
    SemanticType.UINT64: (0, 2**63 - 1),
}

Int32 = Annotated[int, SemanticType.INT32]
UInt32 = Annotated[int, SemanticType.UINT32]
Int64 = Annotated[int, SemanticType.INT64]
UInt64 = Annotated[int, SemanticType.UINT64]
Boolean = Annotated[bool, SemanticType.BOOLEAN]
Float32 = Annotated[float, SemanticType.FLOAT32]
Float64 = Annotated[float, SemanticType.FLOAT64]
Text = Annotated[str, SemanticType.TEXT]
Timestamp = Annotated[datetime, SemanticType.TIMESTAMP]

_PLAIN_TYPES: Dict[Any, SemanticType] = {
    bool: SemanticType.BOOLEAN,
    int: SemanticType.INT64,
    float: SemanticType.FLOAT64,
    str: SemanticType.TEXT,
    datetime: SemanticType.TIMESTAMP,
}

_UNION_ORIGINS: Tuple[Any, ...] = (Union, types.UnionType)


def semantic_type_for(annotation: Any) -> Optional[SemanticType]:
    """
    Resolve a field annotation to its semantic type.

    Returns None when the annotation has no mapping; callers decide whether
    that is fatal (DDL generation) or tolerated (parameter extraction).
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        for meta in annotation.__metadata__:
            if isinstance(meta, SemanticType):
                return meta
        return semantic_type_for(get_args(annotation)[0])
    if origin in _UNION_ORIGINS:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return semantic_type_for(members[0])
        return None
    try:
        return _PLAIN_TYPES.get(annotation)
    except TypeError:  # unhashable annotation objects
        return None


def type_name(annotation: Any) -> str:
    """Readable name of an annotation for error messages."""
    if get_origin(annotation) is not None:
        return repr(annotation).replace("typing.", "")
    return getattr(annotation, "__name__", repr(annotation))


__all__ = [
    "SemanticType",
    "StorageClass",
    "STORAGE_CLASSES",
    "INTEGER_RANGES",
    "semantic_type_for",
    "type_name",
    "Int32",
    "UInt32",
    "Int64",
    "UInt64",
    "Boolean",
    "Float32",
    "Float64",
    "Text",
    "Timestamp",
]
