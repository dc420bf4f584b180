"""
Database connection factory utilities for SQLite Entity.

Every data context operation acquires its own aiosqlite connection through
`open_connection`, uses it exclusively, and releases it on every exit path.
Nothing is pooled or shared between operations.

Connections run in autocommit mode (`isolation_level=None`): each statement
commits on its own, so a column added before an insert stays added even if
the insert fails.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

from sqlite_entity.config import get_settings
from sqlite_entity.utils.logging import get_logger

log = get_logger(__name__)


def resolve_db_path(path: Optional[str | Path] = None) -> str:
    """
    Resolve the database file reference, falling back to settings.

    `:memory:` is passed through untouched; anything else is expanded to an
    absolute path so log lines identify the file unambiguously.
    """
    target = str(path) if path is not None else get_settings().db_path
    if target == ":memory:":
        return target
    return str(Path(target).expanduser().resolve())


@asynccontextmanager
async def open_connection(
    path: str,
    timeout: Optional[float] = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """
    Open a dedicated connection for the duration of one operation.

    Parameters
    ----------
    path : str
        Database file path. SQLite creates the file if it does not exist.
    timeout : float | None
        Seconds to wait on a locked database. Defaults to settings.

    Example
    -------
        async with open_connection("database.sqlite") as conn:
            cursor = await conn.execute("SELECT 1")
    """
    effective_timeout = timeout if timeout is not None else get_settings().busy_timeout_seconds
    conn = await aiosqlite.connect(path, timeout=effective_timeout, isolation_level=None)
    log.debug("[CONNECTION OPEN]", extra={"db_path": path})
    try:
        yield conn
    finally:
        await conn.close()
        log.debug("[CONNECTION CLOSED]", extra={"db_path": path})


__all__ = ["open_connection", "resolve_db_path"]
