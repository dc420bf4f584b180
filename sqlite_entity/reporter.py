from __future__ import annotations

from typing import Any, Dict, List, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from sqlite_entity.domain.descriptor import describe


def print_schema(db_path: str, schema: Dict[str, List[str]]) -> None:
    """
    Render every table and its live columns as a rich table.

    Columns are listed in the order SQLite reports them, which is also the
    order SELECT statements use after `id`.
    """
    console = Console()

    if not schema:
        console.print(f"[yellow]No tables in {db_path}.[/yellow]")
        return

    table = Table(title=f"Schema of {db_path}", box=box.ROUNDED)
    table.add_column("Table", style="cyan", no_wrap=True)
    table.add_column("Columns", justify="right", style="magenta")
    table.add_column("Names", style="green")

    for name in sorted(schema):
        columns = schema[name]
        table.add_row(name, str(len(columns)), ", ".join(columns))

    console.print(table)


def print_records(title: str, records: Sequence[Any]) -> None:
    """Render records of one type, one row per record, fields in declaration order."""
    console = Console()

    if not records:
        console.print(f"[yellow]{title}: no rows.[/yellow]")
        return

    descriptor = describe(type(records[0]))
    table = Table(title=title, box=box.ROUNDED)
    for field in descriptor.fields:
        table.add_column(field.name, style="cyan" if field.primary_key else None)

    for record in records:
        table.add_row(*(str(getattr(record, field.name)) for field in descriptor.fields))

    console.print(table)
