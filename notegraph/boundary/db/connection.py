"""
Database connection management.

Provides the async SQLAlchemy engine, session factory and schema
bootstrap for the SQLite primary store.

Dependencies: sqlalchemy, aiosqlite, notegraph.configs
System role: Database connection lifecycle management
"""

import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notegraph.boundary.db.base import Base
from notegraph.configs import get_settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def enable_foreign_keys(engine: AsyncEngine | Engine) -> None:
    """
    Turn on SQLite foreign key enforcement for every new connection.

    SQLite ships with foreign keys off; ON DELETE CASCADE from work_notes to
    the retry queue and person associations depends on this pragma.
    """
    sync_engine = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
    if sync_engine.dialect.name == "sqlite":
        event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)


def get_async_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with foreign keys enforced.

    Args:
        url: Database URL (defaults to settings.database.url)
        **kwargs: Extra create_async_engine arguments (e.g. poolclass for tests)

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = get_settings().database
    engine = create_async_engine(
        url or db_config.url,
        echo=db_config.echo_sql,
        **kwargs,
    )
    enable_foreign_keys(engine)
    return engine


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for database operations.

    autoflush=False and expire_on_commit=False keep loaded rows usable after
    commit, which background tasks rely on.

    Args:
        engine: Engine to bind (a new one from settings when omitted)

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """
    Create all tables, the FTS5 index and its triggers if missing.

    Args:
        engine: Target engine
    """
    # Registers ORM tables and FTS DDL on Base.metadata.
    import notegraph.boundary.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:init_models - Schema ready")
