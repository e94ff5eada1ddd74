"""
Database configuration.

Async SQLAlchemy engine and session factory shared by the application.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config.settings import settings


def _engine_options() -> dict[str, Any]:
    """Build engine keyword arguments for the configured backend."""
    options: dict[str, Any] = {"echo": settings.database_echo}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return options


async_engine = create_async_engine(settings.database_url, **_engine_options())

async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a database session.

    The session is closed on exit; committing is left to the caller
    (services commit at the end of each operation).

    Yields:
        AsyncSession bound to the shared engine
    """
    async with async_session_maker() as session:
        yield session
