from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base
from .config import Settings, get_settings


# PUBLIC_INTERFACE
def build_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create an AsyncEngine from database settings (read from the environment when omitted)."""
    settings = settings or get_settings()
    url = settings.async_database_url
    options = {"echo": settings.SQL_ECHO}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


# PUBLIC_INTERFACE
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Return the session factory every component receives.

    Each operation opens its own session from this factory, so concurrent
    operations never share one.
    """
    return async_sessionmaker(
        bind=engine, expire_on_commit=False, autoflush=False, autocommit=False
    )


# PUBLIC_INTERFACE
@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager yielding a session that is rolled back if the block raises.

    Usage:
        async with session_scope(factory) as session:
            ...
            await session.commit()
    """
    async with session_factory() as session:
        try:
            yield session
        except BaseException:
            await session.rollback()
            raise


# PUBLIC_INTERFACE
async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly from metadata. Used for development databases and tests."""
    # Import models so every table is registered on Base.metadata.
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
