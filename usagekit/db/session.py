"""Database session configuration.

Engines are built from settings by the container factory and disposed on
shutdown; nothing here opens a connection at import time.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from usagekit.core.config import Settings
from usagekit.models import Base


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the application engine.

    SQLite URLs (used by tests) don't accept pool sizing arguments.
    """
    url = str(settings.SQLALCHEMY_ASYNC_DATABASE_URI)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_POOL_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=300,  # Recycle connections after 5 minutes
        pool_timeout=30,  # Wait up to 30 seconds for a connection
        isolation_level="READ COMMITTED",
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to *engine*."""
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all usagekit tables that don't exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_context(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session that can be used as a context manager.

    Example:
    -------
        async with get_db_context(session_factory) as db:
            await db.execute(...)

    """
    async with session_factory() as db:
        yield db
