"""
SQLAlchemy declarative base and common mixins.

Provides base class for all ORM models, a UTC-aware DateTime type and a
reusable timestamp mixin.

Dependencies: sqlalchemy
System role: Foundation for all database models
"""

import secrets
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str, nbytes: int = 8) -> str:
    """Random prefixed identifier, e.g. ``RETRY-3f2a9c...``."""
    return f"{prefix}-{secrets.token_hex(nbytes)}"


class TZDateTime(TypeDecorator):
    """
    DateTime stored as naive UTC and returned timezone-aware.

    SQLite has no timezone support; normalizing on the way in keeps string
    comparisons in SQL (date filters, next_retry_at <= now) consistent.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for ORM model registration.

    All database models inherit from this class to ensure they're
    registered with the metadata and included in table creation.
    """

    pass


class TimestampMixin:
    """
    Mixin providing automatic timestamp tracking.

    created_at is set once on row creation (callers may supply it, e.g. for
    imports). updated_at is refreshed on every update via onupdate hook.
    Both are UTC.

    Attributes:
        created_at: Row creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC, auto-updated)
    """

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
