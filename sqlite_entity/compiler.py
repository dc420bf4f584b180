"""
Schema compiler: SQL text and bind parameters derived from record descriptors.

Every function here is pure and deterministic. Identical descriptors always
produce byte-identical SQL, so the output can be snapshot-tested without a
database.

Usage:
    from sqlite_entity.compiler import compile_create_table, compile_insert
    from sqlite_entity.domain import describe

    descriptor = describe(Human)
    ddl = compile_create_table(descriptor)
    insert = compile_insert(descriptor)
    insert.sql, insert.parameter_names
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from sqlite_entity.domain.descriptor import (
    PRIMARY_KEY,
    RecordDescriptor,
    describe,
    normalize,
    validate_identifier,
)
from sqlite_entity.domain.semantic import STORAGE_CLASSES, SemanticType, StorageClass
from sqlite_entity.errors import SchemaError, UnsupportedTypeError
from sqlite_entity.marshalling import to_store

TABLE_EXISTS_QUERY = "SELECT count(*) FROM sqlite_master WHERE type='table' AND name=@name"

LIST_TABLES_QUERY = (
    "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
)

PRIMARY_KEY_DEFINITION = f'"{PRIMARY_KEY}" INTEGER PRIMARY KEY'

_PLACEHOLDER = re.compile(r"[@:$]([A-Za-z_][A-Za-z0-9_]*)")


class BindParameter(NamedTuple):
    """A named value bound to a statement; `value` is already store-encoded."""

    name: str
    value: Any


class CompiledStatement(NamedTuple):
    sql: str
    parameter_names: Tuple[str, ...]


def quote(identifier: str) -> str:
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'


def storage_class_for(
    semantic_type: Optional[SemanticType], field_name: Optional[str] = None
) -> StorageClass:
    """
    Map a semantic type to its SQLite storage class.

    Raises
    ------
    UnsupportedTypeError
        If the type is None or not part of the enumeration.
    """
    if semantic_type is None or semantic_type not in STORAGE_CLASSES:
        raise UnsupportedTypeError(str(semantic_type), field_name)
    return STORAGE_CLASSES[semantic_type]


def compile_create_table(descriptor: RecordDescriptor) -> str:
    definitions = [PRIMARY_KEY_DEFINITION]
    for field in descriptor.columns:
        if not field.supported:
            raise UnsupportedTypeError(field.type_name, field.name)
        definitions.append(f"{quote(field.name)} {storage_class_for(field.semantic_type).value}")
    return f"CREATE TABLE {quote(descriptor.table_name)} ({', '.join(definitions)})"


def compile_add_column(
    table_name: str, field_name: str, semantic_type: Optional[SemanticType]
) -> str:
    storage = storage_class_for(semantic_type, field_name)
    validate_identifier(table_name, "table name")
    validate_identifier(field_name, "column name")
    return f"ALTER TABLE {quote(table_name)} ADD COLUMN {quote(field_name)} {storage.value}"


def compile_insert(descriptor: RecordDescriptor) -> CompiledStatement:
    """
    Build the INSERT statement for a record type.

    Placeholders are positional (`?`), so the order of `parameter_names` is
    the order values must be bound in. It matches `extract_bind_parameters`.
    """
    names = tuple(field.name for field in descriptor.columns if field.supported)
    table = quote(descriptor.table_name)
    if not names:
        return CompiledStatement(f"INSERT INTO {table} DEFAULT VALUES", ())
    columns = ", ".join(quote(name) for name in names)
    placeholders = ", ".join("?" for _ in names)
    return CompiledStatement(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", names)


def compile_select(
    table_name: str,
    live_columns: Sequence[str],
    predicate_fragments: Sequence[str] = (),
) -> str:
    """
    Build a SELECT over the live columns of a table.

    `id` always comes first, followed by the remaining live columns in the
    order the store reported them. Live column names are quoted as reported,
    so columns added by other tools need not be plain identifiers. Predicate
    fragments are caller-supplied SQL and are joined with AND verbatim.
    """
    validate_identifier(table_name, "table name")
    columns = [PRIMARY_KEY]
    columns += [column for column in live_columns if normalize(column) != PRIMARY_KEY]
    sql = f"SELECT {', '.join(quote(column) for column in columns)} FROM {quote(table_name)}"
    if predicate_fragments:
        sql = f"{sql} WHERE {' AND '.join(predicate_fragments)}"
    return sql


def compile_update(descriptor: RecordDescriptor) -> str:
    key = descriptor.require_primary_key("update")
    assignments = [
        f"{quote(field.name)} = @{field.name}" for field in descriptor.columns if field.supported
    ]
    if not assignments:
        # nothing to change; still report whether the row exists
        assignments = [f"{quote(PRIMARY_KEY)} = @{key.name}"]
    return (
        f"UPDATE {quote(descriptor.table_name)} SET {', '.join(assignments)} "
        f"WHERE {quote(PRIMARY_KEY)} = @{key.name}"
    )


def compile_delete(table_name: str) -> str:
    validate_identifier(table_name, "table name")
    return f"DELETE FROM {quote(table_name)} WHERE {quote(PRIMARY_KEY)} = @{PRIMARY_KEY}"


def compile_table_info(table_name: str) -> str:
    validate_identifier(table_name, "table name")
    escaped = table_name.replace("'", "''")
    return f"PRAGMA table_info('{escaped}')"


def extract_bind_parameters(record: Any) -> List[BindParameter]:
    """
    Reflect a record's persisted values in descriptor order.

    The primary key and fields without a semantic type are skipped; only DDL
    generation treats unsupported fields as an error. Integers that do not fit
    their type raise `DataIntegrityError`.
    """
    descriptor = describe(type(record))
    return [
        BindParameter(
            field.name,
            to_store(
                field.semantic_type,
                getattr(record, field.name),
                table=descriptor.table_name,
                column=field.name,
            ),
        )
        for field in descriptor.columns
        if field.supported
    ]


def extract_predicate_parameters(
    predicates: Optional[Mapping[str, Any]],
) -> Tuple[List[str], Dict[str, Any]]:
    """
    Split a predicate mapping into WHERE fragments and named parameters.

    Each key is a boolean SQL fragment such as ``"Age > @age"``. Its value is
    either a `BindParameter` naming the placeholder explicitly, or a plain
    value bound to the single placeholder the fragment contains. A fragment
    without placeholders must map to None.

    Raises
    ------
    SchemaError
        If a plain value's fragment has zero or several placeholders, or one
        name is bound to two different values.
    """
    fragments: List[str] = []
    params: Dict[str, Any] = {}
    for fragment, value in (predicates or {}).items():
        fragments.append(fragment)
        if isinstance(value, BindParameter):
            name, bound = value.name.lstrip("@:$"), to_store(None, value.value)
        else:
            names = sorted(set(_PLACEHOLDER.findall(fragment)))
            if not names and value is None:
                continue
            if len(names) != 1:
                raise SchemaError(
                    f"Predicate {fragment!r} needs exactly one placeholder to bind {value!r}; "
                    "pass a BindParameter to name it explicitly"
                )
            name, bound = names[0], to_store(None, value)
        if name in params and params[name] != bound:
            raise SchemaError(f"Placeholder @{name} is bound to conflicting values")
        params[name] = bound
    return fragments, params


__all__ = [
    "TABLE_EXISTS_QUERY",
    "LIST_TABLES_QUERY",
    "BindParameter",
    "CompiledStatement",
    "storage_class_for",
    "compile_create_table",
    "compile_add_column",
    "compile_insert",
    "compile_select",
    "compile_update",
    "compile_delete",
    "compile_table_info",
    "extract_bind_parameters",
    "extract_predicate_parameters",
]
