"""Process-wide engine and session factory for the course store.

The API takes sessions through ``get_session``; worker jobs open their own
from ``get_session_factory()``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from signoff.core.config import get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_engine() -> AsyncEngine:
    global _engine

    if _engine is None:
        url = get_settings().async_database_url
        _engine = create_async_engine(
            url,
            echo=False,
            future=True,
            # SQLite files are local; only network databases need the liveness check
            pool_pre_ping=not url.startswith("sqlite"),
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Snapshots are read after commit, so instances must not expire."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(_get_engine(), expire_on_commit=False)
    return _session_factory


def set_session_factory(factory: async_sessionmaker[AsyncSession] | None) -> None:
    """Point worker jobs at another database; ``None`` restores the default."""
    global _session_factory
    _session_factory = factory


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_session_factory()() as session:
        yield session
