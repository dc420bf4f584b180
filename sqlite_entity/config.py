"""
Configuration settings for SQLite Entity.

Uses Pydantic Settings to load environment variables for the database file
location, connection behaviour, and logging. Values can also come from a
local `.env` file.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_path: str = Field("database.sqlite", alias="SQLITE_ENTITY_DB_PATH")
    busy_timeout_seconds: float = Field(5.0, alias="SQLITE_ENTITY_BUSY_TIMEOUT")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
