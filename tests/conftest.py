from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from signoff.api.deps import get_db_session
from signoff.api.main import app
from signoff.infrastructure.db.base import Base
from signoff.infrastructure.db.session import set_session_factory
from tests.utils import ADMIN, ROSTER, seed_users


def _make_engine(path: Path) -> AsyncEngine:
    # NullPool: every event loop (TestClient portal, asyncio.run) opens its own connection
    return create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool, future=True)


async def _create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture()
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Empty database for async service tests."""
    engine = _make_engine(tmp_path / "signoff.db")
    await _create_schema(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def seeded_factory(tmp_path: Path) -> Iterator[async_sessionmaker[AsyncSession]]:
    """Database with the admin and standard roster, for sync tests."""
    engine = _make_engine(tmp_path / "signoff-seeded.db")
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _init_db() -> None:
        await _create_schema(engine)
        await seed_users(factory, [ADMIN, *ROSTER])

    asyncio.run(_init_db())
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture()
def test_client(seeded_factory: async_sessionmaker[AsyncSession]) -> Iterator[TestClient]:
    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with seeded_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    with TestClient(app) as client:
        client.session_factory = seeded_factory  # type: ignore[attr-defined]
        yield client
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
def worker_factory(
    seeded_factory: async_sessionmaker[AsyncSession],
) -> Iterator[async_sessionmaker[AsyncSession]]:
    """Point worker jobs at the seeded test database."""
    set_session_factory(seeded_factory)
    yield seeded_factory
    set_session_factory(None)


@pytest.fixture()
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """In-process HTTP client over an empty roster plus the administrator."""
    await seed_users(session_factory, [ADMIN])

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)
