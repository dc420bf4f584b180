"""
Record type descriptors and the registration step that produces them.

A descriptor is the static, ordered list of persisted fields of a record
type together with their semantic types. It is built once per class and
cached, so the schema compiler and the data context never introspect a
class on the hot path.

Supported record kinds are pydantic models and standard dataclasses.
"""

from __future__ import annotations

import dataclasses
import re
import threading
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple, Type, TypeVar, get_type_hints

from pydantic import BaseModel

from sqlite_entity.domain.semantic import SemanticType, semantic_type_for, type_name
from sqlite_entity.errors import SchemaError

T = TypeVar("T")

PRIMARY_KEY = "id"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_registry: Dict[type, "RecordDescriptor"] = {}
_registry_lock = threading.Lock()


def normalize(name: str) -> str:
    """Column and field names are compared case-insensitively."""
    return name.lower()


def validate_identifier(name: str, kind: str = "identifier") -> str:
    if not _IDENTIFIER.match(name):
        raise SchemaError(f"Invalid {kind} '{name}': expected a plain SQL identifier")
    return name


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One persisted field.

    `semantic_type` is None when the annotation has no storage mapping.
    Such fields are skipped when binding values but rejected by DDL.
    """

    name: str
    semantic_type: Optional[SemanticType]
    type_name: str
    primary_key: bool = False

    @property
    def supported(self) -> bool:
        return self.semantic_type is not None


@dataclass(frozen=True)
class RecordDescriptor:
    record_type: type
    table_name: str
    fields: Tuple[FieldDescriptor, ...]

    @property
    def primary_key(self) -> Optional[FieldDescriptor]:
        for field in self.fields:
            if field.primary_key:
                return field
        return None

    @property
    def columns(self) -> Tuple[FieldDescriptor, ...]:
        """Every field except the primary key, in declaration order."""
        return tuple(field for field in self.fields if not field.primary_key)

    @property
    def writes_back_row_id(self) -> bool:
        """Only an INT64 `id` field receives the store-assigned row id."""
        key = self.primary_key
        return key is not None and key.semantic_type is SemanticType.INT64

    def field_for_column(self, column: str) -> Optional[FieldDescriptor]:
        wanted = normalize(column)
        for field in self.fields:
            if normalize(field.name) == wanted:
                return field
        return None

    def require_primary_key(self, operation: str) -> FieldDescriptor:
        key = self.primary_key
        if key is None:
            raise SchemaError(
                f"{self.table_name} has no '{PRIMARY_KEY}' field; cannot {operation} records"
            )
        return key

    def instantiate(self, values: Mapping[str, Any]) -> Any:
        """Build a new record from already converted field values."""
        if issubclass(self.record_type, BaseModel):
            return self.record_type.model_construct(**values)
        return self.record_type(**values)

    def with_value(self, record: T, field_name: str, value: Any) -> T:
        """
        Set a field on `record`, returning the record.

        Frozen models and dataclasses cannot be mutated; a copy carrying the
        new value is returned instead.
        """
        if isinstance(record, BaseModel):
            if record.model_config.get("frozen"):
                return record.model_copy(update={field_name: value})
        elif _is_frozen_dataclass(record):
            return dataclasses.replace(record, **{field_name: value})
        setattr(record, field_name, value)
        return record


def _is_frozen_dataclass(obj: Any) -> bool:
    params = getattr(type(obj), "__dataclass_params__", None)
    return bool(params and params.frozen)


def _field_annotations(record_type: type) -> Tuple[Tuple[str, Any], ...]:
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        # pydantic strips Annotated metadata into FieldInfo.metadata
        annotations = []
        for name, info in record_type.model_fields.items():
            annotation = info.annotation
            if info.metadata:
                annotation = Annotated[(annotation, *info.metadata)]
            annotations.append((name, annotation))
        return tuple(annotations)
    if dataclasses.is_dataclass(record_type):
        hints = get_type_hints(record_type, include_extras=True)
        return tuple((f.name, hints.get(f.name, Any)) for f in dataclasses.fields(record_type))
    raise SchemaError(
        f"{getattr(record_type, '__name__', record_type)!r} is not a pydantic model or dataclass"
    )


def _build(record_type: type) -> RecordDescriptor:
    table_name = validate_identifier(record_type.__name__, "table name")
    fields = []
    for name, annotation in _field_annotations(record_type):
        validate_identifier(name, "column name")
        fields.append(
            FieldDescriptor(
                name=name,
                semantic_type=semantic_type_for(annotation),
                type_name=type_name(annotation),
                primary_key=normalize(name) == PRIMARY_KEY,
            )
        )

    keys = [field.name for field in fields if field.primary_key]
    if len(keys) > 1:
        raise SchemaError(
            f"{table_name} declares more than one primary key field: {', '.join(keys)}"
        )

    return RecordDescriptor(record_type=record_type, table_name=table_name, fields=tuple(fields))


def describe(record_type: Type[Any]) -> RecordDescriptor:
    """
    Return the cached descriptor for a record type, building it on first use.

    Raises
    ------
    SchemaError
        If the class is not a supported record kind, a name is not a plain
        SQL identifier, or more than one field normalizes to `id`.
    """
    descriptor = _registry.get(record_type)
    if descriptor is not None:
        return descriptor
    with _registry_lock:
        descriptor = _registry.get(record_type)
        if descriptor is None:
            descriptor = _build(record_type)
            _registry[record_type] = descriptor
    return descriptor


def entity(record_type: Type[T]) -> Type[T]:
    """Class decorator registering a record type at definition time."""
    describe(record_type)
    return record_type


__all__ = [
    "PRIMARY_KEY",
    "FieldDescriptor",
    "RecordDescriptor",
    "describe",
    "entity",
    "normalize",
    "validate_identifier",
]
