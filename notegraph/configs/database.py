"""
Database configuration settings.

Manages the primary store connection for SQLAlchemy. The primary store is
SQLite (aiosqlite driver) because lexical search relies on FTS5.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from notegraph.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """Primary store (SQLite) configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DATABASE_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./notegraph.db",
        description="SQLAlchemy async database URL",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")
