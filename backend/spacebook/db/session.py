"""Database engine, sessionmaker and session scopes."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from spacebook.core.config import get_settings

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def _database_url(override: str | None = None) -> str:
    return override or get_settings().database_url


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the cached sessionmaker bound to ``database_url``."""
    url = _database_url(database_url)
    factory = _sessionmakers.get(url)
    if factory is None:
        engine = create_async_engine(url, echo=False, future=True)
        factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        _engines[url] = engine
        _sessionmakers[url] = factory
    return factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a request-scoped session for FastAPI dependencies."""
    async with get_sessionmaker()() as session:
        yield session


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Open a session for background work, rolling back on failure."""
    factory = factory or get_sessionmaker()
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def dispose_engine(database_url: str | None = None) -> None:
    """Dispose the cached engine and sessionmaker for ``database_url``."""
    url = _database_url(database_url)
    _sessionmakers.pop(url, None)
    engine = _engines.pop(url, None)
    if engine is not None:
        await engine.dispose()
