"""
Value conversion between record fields and SQLite column values.

Writing: booleans become 0/1, timestamps become ISO-8601 text, integers are
checked against the width of their type, every other supported value is
handed to the driver unchanged.

Reading: each stored value is checked against the field's semantic type and
converted. NULL reads as the zero value of the type (`""` for text,
`datetime.min` for timestamps), which also covers rows written before a
column was added. Values that do not fit the declared type raise
`DataIntegrityError` instead of being coerced.
"""

from __future__ import annotations

import struct
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlite_entity.domain.semantic import INTEGER_RANGES, SemanticType
from sqlite_entity.errors import DataIntegrityError, UnsupportedTypeError

TIMESTAMP_SEPARATOR = " "

ZERO_VALUES: Dict[SemanticType, Any] = {
    SemanticType.INT32: 0,
    SemanticType.UINT32: 0,
    SemanticType.INT64: 0,
    SemanticType.UINT64: 0,
    SemanticType.BOOLEAN: False,
    SemanticType.FLOAT32: 0.0,
    SemanticType.FLOAT64: 0.0,
    SemanticType.TEXT: "",
    SemanticType.TIMESTAMP: datetime.min,
}


def zero_value(semantic_type: SemanticType) -> Any:
    return ZERO_VALUES[semantic_type]


def to_store(
    semantic_type: Optional[SemanticType],
    value: Any,
    table: str = "",
    column: str = "",
) -> Any:
    """
    Convert a field value into the value bound to the statement.

    Integers are checked against the width of their semantic type here, so a
    value the read side would reject never reaches the table.

    Raises
    ------
    DataIntegrityError
        If an integer does not fit its declared type.
    """
    if value is None:
        return None
    if semantic_type is SemanticType.BOOLEAN or isinstance(value, bool):
        return 1 if value else 0
    if semantic_type in INTEGER_RANGES and isinstance(value, int):
        low, high = INTEGER_RANGES[semantic_type]
        if not low <= value <= high:
            where = f"{table}.{column}" if table else column
            raise DataIntegrityError(
                f"Value {value!r} for {where} does not fit {semantic_type.value}: "
                f"outside [{low}, {high}]",
                table=table,
                column=column,
                value=value,
            )
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=TIMESTAMP_SEPARATOR)
    return value


def _integrity_error(
    semantic_type: SemanticType, value: Any, table: str, column: str, detail: str = ""
) -> DataIntegrityError:
    where = f"{table}.{column}" if table else column
    message = f"Stored value {value!r} in {where} is not a valid {semantic_type.value}"
    if detail:
        message = f"{message}: {detail}"
    return DataIntegrityError(message, table=table, column=column, value=value)


def _read_integer(semantic_type: SemanticType, value: Any, table: str, column: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _integrity_error(semantic_type, value, table, column)
    low, high = INTEGER_RANGES[semantic_type]
    if not low <= value <= high:
        raise _integrity_error(semantic_type, value, table, column, f"outside [{low}, {high}]")
    return value


def _read_boolean(semantic_type: SemanticType, value: Any, table: str, column: str) -> bool:
    if isinstance(value, int) and value in (0, 1):
        return value == 1
    raise _integrity_error(semantic_type, value, table, column, "expected 0 or 1")


def _read_float32(semantic_type: SemanticType, value: Any, table: str, column: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _integrity_error(semantic_type, value, table, column)
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError as exc:
        raise _integrity_error(semantic_type, value, table, column, str(exc)) from exc


def _read_float64(semantic_type: SemanticType, value: Any, table: str, column: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _integrity_error(semantic_type, value, table, column)
    return float(value)


def _read_text(semantic_type: SemanticType, value: Any, table: str, column: str) -> str:
    if isinstance(value, str):
        return value
    # TEXT affinity keeps numbers written by other tools as numbers
    if isinstance(value, (int, float)):
        return str(value)
    raise _integrity_error(semantic_type, value, table, column)


def _read_timestamp(semantic_type: SemanticType, value: Any, table: str, column: str) -> datetime:
    if not isinstance(value, str):
        raise _integrity_error(semantic_type, value, table, column)
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise _integrity_error(semantic_type, value, table, column, str(exc)) from exc


_READERS: Dict[SemanticType, Callable[[SemanticType, Any, str, str], Any]] = {
    SemanticType.INT32: _read_integer,
    SemanticType.UINT32: _read_integer,
    SemanticType.INT64: _read_integer,
    SemanticType.UINT64: _read_integer,
    SemanticType.BOOLEAN: _read_boolean,
    SemanticType.FLOAT32: _read_float32,
    SemanticType.FLOAT64: _read_float64,
    SemanticType.TEXT: _read_text,
    SemanticType.TIMESTAMP: _read_timestamp,
}


def from_store(
    semantic_type: Optional[SemanticType],
    value: Any,
    table: str = "",
    column: str = "",
) -> Any:
    """
    Convert a stored column value into the field's in-memory value.

    Parameters
    ----------
    semantic_type : SemanticType | None
        Declared type of the receiving field.
    value : Any
        Raw value returned by the driver.
    table, column : str
        Used for error context only.

    Raises
    ------
    DataIntegrityError
        If the stored value does not fit the semantic type.
    UnsupportedTypeError
        If the field has no semantic type.
    """
    if semantic_type is None:
        raise UnsupportedTypeError(type(value).__name__, column or None)
    if value is None:
        return zero_value(semantic_type)
    return _READERS[semantic_type](semantic_type, value, table, column)


__all__ = ["ZERO_VALUES", "zero_value", "to_store", "from_store"]
