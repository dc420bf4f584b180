"""
Data context: typed CRUD over one SQLite database file.

Each operation runs the same sequence on a connection of its own:

1. ensure the table named after the record type exists (create it if not),
2. on insert, add any column the record type has gained since,
3. execute the compiled statement,
4. on select, marshal every row back into a new record instance.

Schema state is rediscovered on every call, so tables edited by hand or by
other processes are always respected. No error is retried here; every
failure reaches the caller.

Usage:
    from sqlite_entity import DataContext, entity

    @entity
    class Human(BaseModel):
        id: int = 0
        name: str = ""
        age: Int32 = 0

    ctx = DataContext("database.sqlite")
    saito = await ctx.insert_async(Human(name="Saito", age=20))
    found = await ctx.select_async(Human, {"id = @id": saito.id})
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Coroutine,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
)

import aiosqlite

from sqlite_entity.compiler import (
    LIST_TABLES_QUERY,
    TABLE_EXISTS_QUERY,
    BindParameter,
    compile_add_column,
    compile_create_table,
    compile_delete,
    compile_insert,
    compile_select,
    compile_table_info,
    compile_update,
    extract_bind_parameters,
    extract_predicate_parameters,
)
from sqlite_entity.domain.descriptor import PRIMARY_KEY, RecordDescriptor, describe, normalize
from sqlite_entity.errors import StoreError
from sqlite_entity.infrastructure.db_factory import open_connection, resolve_db_path
from sqlite_entity.marshalling import from_store, to_store, zero_value
from sqlite_entity.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Parameters = Union[Sequence[Any], Mapping[str, Any]]


@contextmanager
def _store_errors(sql: str) -> Iterator[None]:
    """Re-raise driver failures as StoreError, keeping the original as __cause__."""
    try:
        yield
    except (sqlite3.Error, OverflowError) as exc:
        # sqlite3 raises OverflowError for ints beyond signed 64 bits, e.g. predicate values
        raise StoreError(f"{type(exc).__name__}: {exc}", sql=sql) from exc


class DataContext:
    """
    Mapper bound to one SQLite database file.

    Every public operation exists as a coroutine (`*_async`) and as a blocking
    wrapper of the same name that runs it on a fresh event loop.

    Parameters
    ----------
    path : str | Path | None
        Database file. Defaults to `settings.db_path`. Created by SQLite on
        first use if missing.
    timeout : float | None
        Seconds to wait on a locked database. Defaults to settings.
    """

    def __init__(
        self, path: Optional[Union[str, Path]] = None, timeout: Optional[float] = None
    ) -> None:
        self.path = resolve_db_path(path)
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"DataContext(path={self.path!r})"

    # ------------------------------------------------------------------
    # Connection and statement helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        with _store_errors(f"connect {self.path}"):
            async with open_connection(self.path, self._timeout) as conn:
                yield conn

    async def _execute(
        self, conn: aiosqlite.Connection, sql: str, params: Parameters = ()
    ) -> aiosqlite.Cursor:
        log.debug(f"[EXECUTE] {sql}", extra={"sql": sql})
        with _store_errors(sql):
            return await conn.execute(sql, params)

    async def _scalar(self, conn: aiosqlite.Connection, sql: str, params: Parameters = ()) -> Any:
        cursor = await self._execute(conn, sql, params)
        with _store_errors(sql):
            row = await cursor.fetchone()
        return row[0] if row is not None else None

    async def _table_exists(self, conn: aiosqlite.Connection, table: str) -> bool:
        return bool(await self._scalar(conn, TABLE_EXISTS_QUERY, {"name": table}))

    async def _live_columns(self, conn: aiosqlite.Connection, table: str) -> List[str]:
        sql = compile_table_info(table)
        cursor = await self._execute(conn, sql)
        with _store_errors(sql):
            rows = await cursor.fetchall()
        # PRAGMA table_info rows: (cid, name, type, notnull, dflt_value, pk)
        return [row[1] for row in rows]

    async def _ensure_table(
        self, conn: aiosqlite.Connection, descriptor: RecordDescriptor, create_sql: str
    ) -> None:
        if await self._table_exists(conn, descriptor.table_name):
            return
        await self._execute(conn, create_sql)
        log.info(
            f"[CREATE TABLE] {descriptor.table_name}",
            extra={"table": descriptor.table_name, "db_path": self.path},
        )

    async def _ensure_columns(
        self,
        conn: aiosqlite.Connection,
        descriptor: RecordDescriptor,
        params: Sequence[BindParameter],
    ) -> None:
        columns = await self._live_columns(conn, descriptor.table_name)
        live = {normalize(column) for column in columns}
        for param in params:
            column = normalize(param.name)
            if column == PRIMARY_KEY or column in live:
                continue
            field = descriptor.field_for_column(param.name)
            sql = compile_add_column(descriptor.table_name, field.name, field.semantic_type)
            await self._execute(conn, sql)
            live.add(column)
            log.info(
                f"[ADD COLUMN] {descriptor.table_name}.{field.name}",
                extra={"table": descriptor.table_name, "column": field.name},
            )

    def _marshal(
        self, descriptor: RecordDescriptor, columns: Sequence[str], row: Sequence[Any]
    ) -> Any:
        values = {}
        for column, value in zip(columns, row):
            field = descriptor.field_for_column(column)
            if field is None or not field.supported:
                # column kept after its field was removed from the record type
                continue
            values[field.name] = from_store(
                field.semantic_type, value, table=descriptor.table_name, column=column
            )
        for field in descriptor.fields:
            if field.supported and field.name not in values:
                values[field.name] = zero_value(field.semantic_type)
        return descriptor.instantiate(values)

    def _run(self, coro: Coroutine[Any, Any, R]) -> R:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        coro.close()
        raise RuntimeError(
            "DataContext blocking methods cannot run inside an async context; "
            "await the *_async variant instead"
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def insert_async(self, record: T) -> T:
        """
        Insert a record, creating its table and missing columns first.

        Returns
        -------
        record
            The same instance with its `id` set to the new row id when the
            record has an INT64 `id` field. Frozen records are returned as a
            copy carrying the id.

        Raises
        ------
        UnsupportedTypeError
            Before any statement runs, if a field has no storage class.
        DataIntegrityError
            Before any statement runs, if an integer does not fit its field type.
        StoreError
            If SQLite rejects any statement.
        """
        descriptor = describe(type(record))
        create_sql = compile_create_table(descriptor)
        insert = compile_insert(descriptor)
        params = extract_bind_parameters(record)
        values = {param.name: param.value for param in params}
        bound = tuple(values[name] for name in insert.parameter_names)

        async with self._connection() as conn:
            await self._ensure_table(conn, descriptor, create_sql)
            await self._ensure_columns(conn, descriptor, params)
            cursor = await self._execute(conn, insert.sql, bound)
            row_id = cursor.lastrowid

        log.debug(
            f"[INSERT] {descriptor.table_name}",
            extra={"table": descriptor.table_name, "row_id": row_id},
        )
        if descriptor.writes_back_row_id:
            record = descriptor.with_value(record, descriptor.primary_key.name, row_id)
        return record

    async def select_async(
        self,
        record_type: Type[T],
        predicates: Optional[Mapping[str, Any]] = None,
        on_each_row: Optional[Callable[[T], Any]] = None,
    ) -> List[T]:
        """
        Read records of `record_type`, optionally filtered.

        Parameters
        ----------
        record_type : type
            Registered record type; its name is the table name.
        predicates : Mapping[str, Any] | None
            WHERE fragments mapped to their bind values, joined with AND,
            e.g. ``{"Age > @age": 18, "IsDeleted = @deleted": False}``.
            Columns referenced here are never auto-created.
        on_each_row : Callable | None
            Called with each record right after it is marshalled.

        Returns
        -------
        list
            Records in the store's natural row order.
        """
        descriptor = describe(record_type)
        create_sql = compile_create_table(descriptor)
        fragments, params = extract_predicate_parameters(predicates)

        records: List[T] = []
        async with self._connection() as conn:
            await self._ensure_table(conn, descriptor, create_sql)
            live = await self._live_columns(conn, descriptor.table_name)
            sql = compile_select(descriptor.table_name, live, fragments)
            cursor = await self._execute(conn, sql, params)
            columns = [column[0] for column in cursor.description]
            with _store_errors(sql):
                async for row in cursor:
                    record = self._marshal(descriptor, columns, row)
                    if on_each_row is not None:
                        on_each_row(record)
                    records.append(record)

        log.debug(
            f"[SELECT] {descriptor.table_name}",
            extra={"table": descriptor.table_name, "rows": len(records)},
        )
        return records

    async def update_async(self, record: Any) -> int:
        """
        Overwrite the row whose id matches `record.id`.

        Returns the number of affected rows, 0 when no row matched.

        Raises
        ------
        SchemaError
            If the record type has no `id` field.
        """
        descriptor = describe(type(record))
        key = descriptor.require_primary_key("update")
        create_sql = compile_create_table(descriptor)
        sql = compile_update(descriptor)
        params = {param.name: param.value for param in extract_bind_parameters(record)}
        params[key.name] = to_store(
            key.semantic_type, getattr(record, key.name), descriptor.table_name, key.name
        )

        async with self._connection() as conn:
            await self._ensure_table(conn, descriptor, create_sql)
            cursor = await self._execute(conn, sql, params)
            count = cursor.rowcount

        log.debug(
            f"[UPDATE] {descriptor.table_name}",
            extra={"table": descriptor.table_name, "rows": count},
        )
        return count

    async def delete_async(self, record: Any) -> int:
        """
        Delete the row whose id matches `record.id`.

        Returns the number of affected rows, 0 when no row matched.

        Raises
        ------
        SchemaError
            If the record type has no `id` field.
        """
        descriptor = describe(type(record))
        key = descriptor.require_primary_key("delete")
        create_sql = compile_create_table(descriptor)
        sql = compile_delete(descriptor.table_name)
        key_value = to_store(
            key.semantic_type, getattr(record, key.name), descriptor.table_name, key.name
        )
        params = {PRIMARY_KEY: key_value}

        async with self._connection() as conn:
            await self._ensure_table(conn, descriptor, create_sql)
            cursor = await self._execute(conn, sql, params)
            count = cursor.rowcount

        log.debug(
            f"[DELETE] {descriptor.table_name}",
            extra={"table": descriptor.table_name, "rows": count},
        )
        return count

    async def table_exists_async(self, record_type: Union[Type[Any], str]) -> bool:
        """Whether the table for `record_type` (or a table name) exists. Never creates it."""
        table = record_type if isinstance(record_type, str) else describe(record_type).table_name
        async with self._connection() as conn:
            return await self._table_exists(conn, table)

    async def live_columns_async(self, record_type: Union[Type[Any], str]) -> List[str]:
        """Column names currently in the table, in store order. Empty if the table is missing."""
        table = record_type if isinstance(record_type, str) else describe(record_type).table_name
        async with self._connection() as conn:
            return await self._live_columns(conn, table)

    async def tables_async(self) -> List[str]:
        """Names of all user tables in the database, sorted."""
        async with self._connection() as conn:
            cursor = await self._execute(conn, LIST_TABLES_QUERY)
            with _store_errors(LIST_TABLES_QUERY):
                rows = await cursor.fetchall()
        return [row[0] for row in rows]

    # Blocking wrappers

    def insert(self, record: T) -> T:
        return self._run(self.insert_async(record))

    def select(
        self,
        record_type: Type[T],
        predicates: Optional[Mapping[str, Any]] = None,
        on_each_row: Optional[Callable[[T], Any]] = None,
    ) -> List[T]:
        return self._run(self.select_async(record_type, predicates, on_each_row))

    def update(self, record: Any) -> int:
        return self._run(self.update_async(record))

    def delete(self, record: Any) -> int:
        return self._run(self.delete_async(record))

    def table_exists(self, record_type: Union[Type[Any], str]) -> bool:
        return self._run(self.table_exists_async(record_type))

    def live_columns(self, record_type: Union[Type[Any], str]) -> List[str]:
        return self._run(self.live_columns_async(record_type))

    def tables(self) -> List[str]:
        return self._run(self.tables_async())


__all__ = ["DataContext"]
