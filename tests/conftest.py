"""Shared test fixtures.

Each test gets its own SQLite file database so that every session opens its
own connection, which the concurrency tests rely on.
"""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wander.config import get_settings
from wander.database import close_db, get_engine, get_session_factory, init_db
from wander.db.base import Base
from wander.db.models import Achievement, Challenge, Place, Reward, User
from wander.ledger.causes import Currency
from wander.ledger.service import admin_grant
from wander.main import create_app
from wander.places.service import create_place
from wander.users.service import create_user


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    """Pin settings that tests depend on and reset the settings cache."""
    monkeypatch.setenv("WANDER_ELIGIBILITY_TIMEZONE", "UTC")
    monkeypatch.setenv("WANDER_CHECKIN_COIN_REWARD", "10")
    monkeypatch.setenv("WANDER_CHECKIN_EXP_REWARD", "5")
    monkeypatch.setenv("WANDER_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh schema in a temporary SQLite file."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'wander.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def session_factory(database) -> async_sessionmaker[AsyncSession]:
    """Factory for independent sessions (one connection each)."""
    return get_session_factory()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(database) -> FastAPI:
    return create_app()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app. Redis is left uninitialized."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# --- Factories ---


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Create and commit a user; ``coins``/``exp`` are funded through the ledger."""
    seq = itertools.count(1)

    async def _make(coins: int = 0, exp: int = 0) -> User:
        n = next(seq)
        user = await create_user(db_session, f"explorer{n}", f"Explorer {n}", f"Explorer{n}@Example.com")
        await db_session.commit()
        if coins:
            await admin_grant(db_session, user.id, Currency.COIN, coins, admin_id=0)
        if exp:
            await admin_grant(db_session, user.id, Currency.EXP, exp, admin_id=0)
        await db_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def make_place(db_session: AsyncSession) -> Callable[..., Awaitable[Place]]:
    seq = itertools.count(1)

    async def _make(coin_reward: int = 0, exp_reward: int = 0, status: bool = True) -> Place:
        place = await create_place(
            db_session,
            f"Place {next(seq)}",
            coin_reward=coin_reward,
            exp_reward=exp_reward,
            latitude=-6.2,
            longitude=106.8,
            status=status,
        )
        await db_session.commit()
        return place

    return _make


@pytest_asyncio.fixture
async def make_catalog(db_session: AsyncSession) -> Callable[..., Awaitable[Any]]:
    """Create and commit an Achievement, Challenge or Reward."""
    seq = itertools.count(1)

    async def _make(model: type[Achievement] | type[Challenge] | type[Reward], **fields: Any) -> Any:
        fields.setdefault("name", f"{model.__name__} {next(seq)}")
        if model is Reward:
            fields.setdefault("coin_requirement", 0)
        row = model(**fields)
        db_session.add(row)
        await db_session.commit()
        return row

    return _make
