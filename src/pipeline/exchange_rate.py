"""
Toreca Tracker — Exchange Rate Fetch & Storage

USD/JPY comes from the Frankfurter API (ECB reference rates, free, no key).
The daily cron stores one row per run in exchange_rates; price syncs always
convert with the most recent row.

Unlike a price lookup there is no fallback rate: if the fetch fails the
cron run fails and the previous stored rate stays in use.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.errors import UpstreamError
from src.models.exchange_rate import ExchangeRate

logger = structlog.get_logger(__name__)


async def fetch_usd_jpy_rate(
    base: str | None = None,
    target: str | None = None,
    api_url: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> Decimal:
    """
    Return the current base/target rate (JPY per USD by default).

    Raises:
        UpstreamError: non-2xx response, transport failure or missing rate.
    """
    base = base or settings.BASE_CURRENCY
    target = target or settings.TARGET_CURRENCY
    url = f"{api_url or settings.FRANKFURTER_API_URL}/latest"
    params = {"base": base, "symbols": target}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as owned:
                response = await owned.get(url, params=params)
        else:
            response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise UpstreamError(
            f"Frankfurter API error: {e.response.status_code} {e.response.reason_phrase}"
        ) from e
    except (httpx.RequestError, ValueError) as e:
        raise UpstreamError(f"Frankfurter API request failed: {e}") from e

    raw_rate = (data.get("rates") or {}).get(target)
    if not raw_rate:
        raise UpstreamError(f"{target} rate missing from Frankfurter response")

    rate = Decimal(str(raw_rate)).quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP)
    logger.info("exchange_rate_fetched", base=base, target=target, rate=str(rate))
    return rate


async def store_rate(session: AsyncSession, rate: Decimal) -> ExchangeRate:
    """Append a rate snapshot and commit."""
    row = ExchangeRate(
        base_currency=settings.BASE_CURRENCY,
        target_currency=settings.TARGET_CURRENCY,
        rate=rate,
    )
    session.add(row)
    await session.commit()
    return row


async def get_latest_rate(session: AsyncSession) -> Decimal | None:
    """Most recent stored rate for the configured pair, or None if never synced."""
    stmt = (
        select(ExchangeRate.rate)
        .where(
            ExchangeRate.base_currency == settings.BASE_CURRENCY,
            ExchangeRate.target_currency == settings.TARGET_CURRENCY,
        )
        .order_by(ExchangeRate.recorded_at.desc())
        .limit(1)
    )
    return (await session.execute(stmt)).scalar_one_or_none()
