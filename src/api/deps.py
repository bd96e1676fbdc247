"""
Toreca Tracker — FastAPI Dependencies

Everything a route needs is pulled from ``request.app.state``, which
create_app() populates: settings, the session factory, the TTL caches and
the search rate limiter. Tests build an app with their own instances.
"""

from __future__ import annotations

import hmac
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import Depends, Request
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.rate_limit import IntervalRateLimiter, get_client_ip
from src.cache import TTLCache
from src.config import Settings
from src.errors import AuthError, ForbiddenError
from src.models.api_key import ApiKey
from src.pipeline.justtcg import JustTCGClient
from src.pipeline.pricecharting import PriceChartingClient

logger = structlog.get_logger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_factory() as session:
        yield session


def get_sets_cache(request: Request) -> TTLCache:
    return request.app.state.justtcg_sets_cache


def get_cards_cache(request: Request) -> TTLCache:
    return request.app.state.justtcg_cards_cache


def get_search_limiter(request: Request) -> IntervalRateLimiter:
    return request.app.state.search_limiter


async def get_justtcg_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[JustTCGClient, None]:
    async with JustTCGClient(
        api_key=settings.JUSTTCG_API_KEY,
        base_url=settings.JUSTTCG_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ) as client:
        yield client


async def get_pricecharting_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[PriceChartingClient, None]:
    async with PriceChartingClient(
        token=settings.PRICECHARTING_TOKEN,
        base_url=settings.PRICECHARTING_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ) as client:
        yield client


def enforce_search_rate_limit(
    request: Request,
    limiter: IntervalRateLimiter = Depends(get_search_limiter),
) -> None:
    """Reject a client that searched less than the configured interval ago."""
    limiter.enforce(get_client_ip(request))


def require_cron_secret(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """
    Bearer-token check for cron-triggered endpoints.

    An unset CRON_SECRET rejects everything rather than allowing everything.
    """
    secret = settings.CRON_SECRET
    header = request.headers.get("Authorization", "")
    if not secret or not hmac.compare_digest(header, f"Bearer {secret}"):
        logger.warning("cron_auth_rejected", path=request.url.path)
        raise AuthError("Unauthorized")


async def require_api_key(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> ApiKey:
    """
    X-API-Key check for the public read-only API.

    401 when the header is missing or unknown, 403 when the key is disabled.
    A successful check stamps last_used_at.
    """
    key = request.headers.get("X-API-Key")
    if not key:
        raise AuthError("API key is required. Set X-API-Key header.")

    api_key = (await session.execute(select(ApiKey).where(ApiKey.key == key))).scalar_one_or_none()
    if api_key is None:
        raise AuthError("Invalid API key.")
    if not api_key.is_active:
        raise ForbiddenError("API key is disabled.")

    await session.execute(
        update(ApiKey)
        .where(ApiKey.id == api_key.id)
        .values(last_used_at=datetime.now(timezone.utc))
    )
    await session.commit()
    return api_key
