"""
Database engine and session factory
"""

from typing import AsyncIterator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import config

POSTGRES_INDEXES_NAMING_CONVENTION = {
    "ix": "%(column_0_label)s_idx",
    "uq": "%(table_name)s_%(column_0_name)s_key",
    "ck": "%(table_name)s_%(constraint_name)s_check",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}

metadata = MetaData(naming_convention=POSTGRES_INDEXES_NAMING_CONVENTION)

engine: AsyncEngine = None
async_session_factory: async_sessionmaker = None


def configure_engine(database_url: str = None, echo: bool = None) -> AsyncEngine:
    """
    (Re)build the module-level engine and session factory

    Args:
        database_url: SQLAlchemy async URL, defaults to settings.database_url
        echo: Log SQL statements, defaults to settings.database_echo

    Returns:
        AsyncEngine: The new engine
    """
    global engine, async_session_factory

    url = database_url or config.settings.database_url
    kwargs = {"echo": config.settings.database_echo if echo is None else echo}
    # an in-memory SQLite database only lives as long as its single connection
    if url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(url, **kwargs)
    async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    return engine


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding one session per request
    """
    async with async_session_factory() as session:
        yield session


async def dispose_engine() -> None:
    if engine is not None:
        await engine.dispose()


configure_engine()
