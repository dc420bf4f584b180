"""
Pytest configuration for SQLite Entity.

Provides fixtures for:
- A throwaway database file per test
- A DataContext bound to that file
- Direct sqlite3 access for asserting on stored values
- Settings override
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Callable, List

import pytest

from sqlite_entity.config import Settings, get_settings
from sqlite_entity.context import DataContext


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(db_path=":memory:", log_level="DEBUG")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """
    Drop cached settings around each test so env overrides take effect.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="function")
def db_path(tmp_path: Path) -> Path:
    """
    Path of a database file that does not exist yet.
    """
    return tmp_path / "entities.sqlite"


@pytest.fixture(scope="function")
def ctx(db_path: Path) -> DataContext:
    """
    DataContext over the per-test database file.
    """
    return DataContext(db_path)


@pytest.fixture(scope="function")
def raw_sql(db_path: Path) -> Callable[..., List[Any]]:
    """
    Run SQL directly against the test database, bypassing the mapper.

    Returns all fetched rows; statements are committed immediately.
    """

    def run(sql: str, params: Any = ()) -> List[Any]:
        conn = sqlite3.connect(db_path, isolation_level=None)
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    return run


@pytest.fixture(scope="function")
def live_columns(raw_sql: Callable[..., List[Any]]) -> Callable[[str], List[str]]:
    """
    Column names of a table as SQLite reports them.
    """

    def columns(table: str) -> List[str]:
        return [row[1] for row in raw_sql(f"PRAGMA table_info('{table}')")]

    return columns
