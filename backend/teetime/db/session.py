"""Database session and engine helpers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from teetime.core.config import get_settings

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def _database_url(override: str | None = None) -> str:
    return override or get_settings().database_url


def _create_engine(url: str) -> AsyncEngine:
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        return create_async_engine(url, echo=False)
    return create_async_engine(url, echo=False, pool_pre_ping=True)


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return (and cache) an async sessionmaker for the given database URL."""
    url = _database_url(database_url)
    factory = _sessionmakers.get(url)
    if factory is None:
        engine = _create_engine(url)
        factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        _engines[url] = engine
        _sessionmakers[url] = factory
    return factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async database session using the configured engine."""
    async with get_sessionmaker()() as session:
        yield session


@asynccontextmanager
async def session_scope(database_url: str | None = None) -> AsyncIterator[AsyncSession]:
    """Session context for scripts running outside a request."""
    async with get_sessionmaker(database_url)() as session:
        yield session


async def dispose_engine(database_url: str | None = None) -> None:
    """Dispose the cached engine and sessionmaker for the given database URL."""
    url = _database_url(database_url)
    engine = _engines.pop(url, None)
    _sessionmakers.pop(url, None)
    if engine is not None:
        await engine.dispose()
