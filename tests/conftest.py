"""
Toreca Tracker — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- In-memory aiosqlite database (one shared connection per test)
- Test settings with dummy credentials
- FastAPI app + httpx client over ASGITransport
- A controllable clock for TTL caches and the rate limiter
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.rate_limit import IntervalRateLimiter
from src.cache import TTLCache
from src.config import Settings
from src.main import create_app
from src.models.base import Base


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)

CRON_SECRET = "test-cron-secret"
JUSTTCG_BASE_URL = "https://api.justtcg.test/v1"
PRICECHARTING_BASE_URL = "https://pricecharting.test/api"
FRANKFURTER_API_URL = "https://frankfurter.test/v1"


class FakeClock:
    """Monotonic-style clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a fresh in-memory SQLite database.

    StaticPool keeps a single connection so the app and the test see the
    same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]):
    """Insert and commit rows in their own session. Returns the rows."""

    async def _seed(*rows: Any) -> tuple[Any, ...]:
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed


# ---------------------------------------------------------------------------
# App Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        JUSTTCG_API_KEY="test-justtcg-key",
        PRICECHARTING_TOKEN="test-pricecharting-token",
        CRON_SECRET=CRON_SECRET,
        JUSTTCG_BASE_URL=JUSTTCG_BASE_URL,
        PRICECHARTING_BASE_URL=PRICECHARTING_BASE_URL,
        FRANKFURTER_API_URL=FRANKFURTER_API_URL,
        PRICECHARTING_REQUEST_DELAY_SECONDS=0,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(
    test_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    clock: FakeClock,
) -> FastAPI:
    app = create_app(test_settings, session_factory)
    app.state.justtcg_sets_cache = TTLCache(
        test_settings.JUSTTCG_SETS_CACHE_TTL_SECONDS, clock=clock, name="justtcg_sets"
    )
    app.state.justtcg_cards_cache = TTLCache(
        test_settings.JUSTTCG_CARDS_CACHE_TTL_SECONDS, clock=clock, name="justtcg_cards"
    )
    app.state.search_limiter = IntervalRateLimiter(
        test_settings.SEARCH_RATE_LIMIT_SECONDS, clock=clock
    )
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    httpx client bound to the app.

    raise_app_exceptions=False lets tests observe the 500 envelope for
    unexpected errors instead of the re-raised exception.
    """
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def cron_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {CRON_SECRET}"}


# ---------------------------------------------------------------------------
# Utility Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    """Current timestamp for tests."""
    return datetime.now(timezone.utc)
