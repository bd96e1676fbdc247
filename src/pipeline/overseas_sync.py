"""
Toreca Tracker — Overseas Price Sync

For every card linked to a PriceCharting product, fetch the product and
append one overseas_prices sample: the USD penny prices as returned plus
loose/graded yen at the latest stored USD/JPY rate.

The batch run tolerates per-card failures (they are counted and sampled
into the result) and pauses between requests to stay under PriceCharting's
one-request-per-second limit. The single-card path used by the manual
refresh endpoint raises instead.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.errors import TrackerError, UpstreamError
from src.models.card import Card
from src.models.overseas_price import OverseasPrice
from src.pipeline.exchange_rate import get_latest_rate
from src.pipeline.pricecharting import PriceChartingClient, PriceChartingProduct
from src.utils.currency import pennies_to_jpy

logger = structlog.get_logger(__name__)


@dataclass
class SyncResult:
    processed: int = 0
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "successCount": self.success,
            "failed": self.failed,
            "errors": self.errors[: settings.CRON_ERROR_SAMPLE_SIZE],
        }


def build_sample(
    card_id: str,
    pricecharting_id: str,
    product: PriceChartingProduct,
    exchange_rate: Decimal,
) -> OverseasPrice:
    """Shape a product lookup into an unsaved OverseasPrice row."""
    loose = product.loose_price
    graded = product.graded_price
    return OverseasPrice(
        card_id=card_id,
        pricecharting_id=pricecharting_id,
        loose_price_usd=loose,
        cib_price_usd=product.cib_price,
        new_price_usd=product.new_price,
        graded_price_usd=graded,
        exchange_rate=exchange_rate,
        loose_price_jpy=pennies_to_jpy(loose, exchange_rate) if loose is not None else None,
        graded_price_jpy=pennies_to_jpy(graded, exchange_rate) if graded is not None else None,
    )


async def require_latest_rate(session: AsyncSession) -> Decimal:
    rate = await get_latest_rate(session)
    if rate is None:
        raise UpstreamError("No exchange rate stored; run exchange-rate-sync first")
    return rate


async def record_card_price(
    session: AsyncSession,
    client: PriceChartingClient,
    card_id: str,
    pricecharting_id: str,
) -> dict[str, Any]:
    """Fetch one product now and append its sample. Errors propagate."""
    rate = await require_latest_rate(session)
    product = await client.get_product(pricecharting_id)

    sample = build_sample(card_id, pricecharting_id, product, rate)
    session.add(sample)
    await session.commit()

    logger.info(
        "overseas_price_recorded",
        card_id=card_id,
        pricecharting_id=pricecharting_id,
        loose_usd=sample.loose_price_usd,
        graded_usd=sample.graded_price_usd,
    )
    return {
        "productName": product.product_name,
        "looseUsd": sample.loose_price_usd,
        "gradedUsd": sample.graded_price_usd,
        "looseJpy": sample.loose_price_jpy,
        "gradedJpy": sample.graded_price_jpy,
        "exchangeRate": float(rate),
    }


async def sync_linked_cards(
    session: AsyncSession,
    client: PriceChartingClient,
    limit: int | None = None,
    delay_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> SyncResult:
    """
    Append a sample for every card with a pricecharting_id.

    Args:
        session: Async database session.
        client: Open PriceChartingClient.
        limit: Optional cap on the number of cards processed. Zero or
            negative means no cap.
        delay_seconds: Pause after each card (default from settings).
        sleep: Awaitable sleep, injectable for tests.
    """
    delay = settings.PRICECHARTING_REQUEST_DELAY_SECONDS if delay_seconds is None else delay_seconds
    rate = await require_latest_rate(session)

    stmt = select(Card.id, Card.pricecharting_id).where(Card.pricecharting_id.is_not(None))
    if limit is not None and limit > 0:
        stmt = stmt.limit(limit)
    cards = (await session.execute(stmt)).all()

    result = SyncResult(processed=len(cards))
    logger.info("overseas_sync_start", cards=len(cards), exchange_rate=str(rate))

    for card_id, pricecharting_id in cards:
        try:
            product = await client.get_product(pricecharting_id)
            session.add(build_sample(card_id, pricecharting_id, product, rate))
            await session.commit()
            result.success += 1
        except (TrackerError, SQLAlchemyError) as e:
            await session.rollback()
            result.failed += 1
            result.errors.append(f"{card_id}: {e}")
            logger.error("overseas_sync_card_failed", card_id=card_id, error=str(e))

        await sleep(delay)

    logger.info(
        "overseas_sync_complete",
        processed=result.processed,
        success=result.success,
        failed=result.failed,
    )
    return result
