from __future__ import annotations

import sys
from datetime import datetime
from typing import Optional

import typer
from pydantic import BaseModel

from sqlite_entity.config import get_settings
from sqlite_entity.context import DataContext
from sqlite_entity.domain import Int32, entity
from sqlite_entity.reporter import print_records, print_schema
from sqlite_entity.utils.logging import configure_logging

app = typer.Typer(help="SQLite Entity CLI.")


@entity
class Human(BaseModel):
    Id: int = 0
    Name: str = ""
    Age: Int32 = 0
    CreateTime: datetime = datetime.min
    UpdateTime: datetime = datetime.min
    IsDeleted: bool = False


def _context(db_path: Optional[str]) -> DataContext:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    return DataContext(db_path)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_path} | busy_timeout={settings.busy_timeout_seconds}s | "
        f"env={settings.app_env} log_level={settings.log_level} json_logs={settings.json_logs}"
    )


@app.command()
def tables(
    db_path: Optional[str] = typer.Option(
        None, "--db", "-d", help="Database file (default from settings)."
    ),
) -> None:
    """
    List tables and their live columns.
    """
    ctx = _context(db_path)
    schema = {name: ctx.live_columns(name) for name in ctx.tables()}
    print_schema(ctx.path, schema)


@app.command()
def demo(
    db_path: Optional[str] = typer.Option(
        None, "--db", "-d", help="Database file (default from settings)."
    ),
    name: str = typer.Option("Saito", "--name", help="Name of the inserted human."),
    age: int = typer.Option(20, "--age", help="Age of the inserted human."),
    keep: bool = typer.Option(False, "--keep", help="Skip the final delete."),
) -> None:
    """
    Walk through insert, select, update and delete with a `Human` record.
    """
    ctx = _context(db_path)

    human = ctx.insert(Human(Name=name, Age=age, CreateTime=datetime.now()))
    typer.echo(f"Inserted {human.Name} with id={human.Id}")

    result = ctx.select(Human, {"id = @id": human.Id})
    print_records("Selected", result)

    found = result[0]
    found.IsDeleted = True
    found.UpdateTime = datetime.now()
    typer.echo(f"Updated {ctx.update(found)} row(s)")
    print_records("After update", ctx.select(Human, {"id = @id": human.Id}))

    if not keep:
        typer.echo(f"Deleted {ctx.delete(found)} row(s)")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
