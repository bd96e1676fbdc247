"""
Toreca Tracker — Time-Windowed Price History

Reads a card's overseas price samples inside a lookback window and shapes
them for charting.

Window rules:
    1. The period selector is one of 30d / 90d / 1y / all.
    2. A missing or unrecognised selector silently becomes the default (30d).
       This leniency is intentional; clients send free-form query strings.
    3. lower_bound = now - days(selector). "all" has no lower bound.
    4. Samples with recorded_at >= lower_bound are returned, oldest first.
    5. Missing numeric fields in a sample become 0, never null.

The ordering invariant comes from ORDER BY recorded_at ASC; duplicate
timestamps for one card are not prevented here.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import PERIOD_DAYS, HistoryPeriod, settings
from src.models.base import as_utc
from src.models.card import Card
from src.models.overseas_price import OverseasPrice

logger = structlog.get_logger(__name__)

SERIES_FIELDS = ("loose_price_jpy", "loose_price_usd", "graded_price_jpy", "graded_price_usd")


# ---------------------------------------------------------------------------
# Window arithmetic
# ---------------------------------------------------------------------------


def resolve_period(selector: str | None) -> HistoryPeriod:
    """Map a raw selector to a HistoryPeriod, falling back to the default."""
    if selector:
        try:
            return HistoryPeriod(selector)
        except ValueError:
            logger.debug("history_period_unrecognised", selector=selector)
    return settings.HISTORY_DEFAULT_PERIOD


def lower_bound_for(period: HistoryPeriod, now: datetime) -> datetime | None:
    """now minus the period's day count; None for ALL."""
    days = PERIOD_DAYS[period]
    if days is None:
        return None
    return now - timedelta(days=days)


def lower_bound_for_days(days: int | None, now: datetime) -> datetime | None:
    """Lower bound for a raw day count. None or 0 means unbounded."""
    if not days:
        return None
    return now - timedelta(days=days)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def fetch_samples(
    session: AsyncSession,
    card_id: str,
    since: datetime | None,
) -> Sequence[OverseasPrice]:
    """All samples for card_id at or after since (if given), ascending."""
    stmt = select(OverseasPrice).where(OverseasPrice.card_id == card_id)
    if since is not None:
        stmt = stmt.where(OverseasPrice.recorded_at >= since)
    stmt = stmt.order_by(OverseasPrice.recorded_at.asc())
    return (await session.execute(stmt)).scalars().all()


def shape_sample(row: OverseasPrice) -> dict[str, Any]:
    """Client-ready point: date string plus the four series, nulls as 0."""
    recorded_at = as_utc(row.recorded_at)
    return {
        "date": recorded_at.date().isoformat() if recorded_at else "",
        "recorded_at": recorded_at.isoformat() if recorded_at else None,
        **{field: getattr(row, field) or 0 for field in SERIES_FIELDS},
    }


async def get_price_history(
    session: AsyncSession,
    card_id: str,
    period: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Windowed price series for a card.

    Args:
        session: Async database session.
        card_id: Card to read. Caller validates it is non-empty.
        period: Raw selector; unknown values fall back to the default.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        {"period": resolved selector, "from": bound iso or None, "series": [...]}
    """
    now = now or datetime.now(timezone.utc)
    resolved = resolve_period(period)
    bound = lower_bound_for(resolved, now)

    rows = await fetch_samples(session, card_id, bound)
    series = [shape_sample(row) for row in rows]

    logger.info(
        "price_history_read",
        card_id=card_id,
        period=resolved.value,
        lower_bound=bound.isoformat() if bound else None,
        points=len(series),
    )
    return {
        "period": resolved.value,
        "from": bound.isoformat() if bound else None,
        "series": series,
    }


def sample_to_dict(row: OverseasPrice) -> dict[str, Any]:
    """Full stored row, for the raw overseas-prices listing."""
    return {
        "id": row.id,
        "card_id": row.card_id,
        "pricecharting_id": row.pricecharting_id,
        "loose_price_usd": row.loose_price_usd,
        "cib_price_usd": row.cib_price_usd,
        "new_price_usd": row.new_price_usd,
        "graded_price_usd": row.graded_price_usd,
        "exchange_rate": float(row.exchange_rate) if row.exchange_rate is not None else None,
        "loose_price_jpy": row.loose_price_jpy,
        "graded_price_jpy": row.graded_price_jpy,
        "recorded_at": as_utc(row.recorded_at).isoformat(),
    }


async def list_overseas_prices(
    session: AsyncSession,
    card_id: str,
    days: int | None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Raw samples over the last ``days`` days (0 or None: everything), ascending."""
    now = now or datetime.now(timezone.utc)
    rows = await fetch_samples(session, card_id, lower_bound_for_days(days, now))
    return [sample_to_dict(row) for row in rows]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


async def search_cards_with_latest_price(
    session: AsyncSession,
    query: str,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """
    Case-insensitive name containment search, each hit with its latest sample.

    Cards with no samples report zeros for every series.
    """
    query = query.strip()
    if not query:
        return []

    limit = limit or settings.CHART_SEARCH_LIMIT
    card_stmt = (
        select(Card)
        .where(func.lower(Card.name).contains(query.lower()))
        .order_by(Card.name)
        .limit(limit)
    )
    cards = (await session.execute(card_stmt)).scalars().all()
    if not cards:
        return []

    price_stmt = (
        select(OverseasPrice)
        .where(OverseasPrice.card_id.in_([c.id for c in cards]))
        .order_by(OverseasPrice.recorded_at.desc())
    )
    latest: dict[str, OverseasPrice] = {}
    for row in (await session.execute(price_stmt)).scalars():
        latest.setdefault(row.card_id, row)

    results = []
    for card in cards:
        sample = latest.get(card.id)
        results.append({
            "id": card.id,
            "name": card.name,
            "card_number": card.card_number,
            "image_url": card.image_url,
            "pricecharting_id": card.pricecharting_id,
            **{field: (getattr(sample, field) or 0) if sample else 0 for field in SERIES_FIELDS},
        })
    return results


# ---------------------------------------------------------------------------
# Daily aggregation (public API)
# ---------------------------------------------------------------------------


def _average(values: list[int]) -> int | None:
    if not values:
        return None
    mean = Decimal(sum(values)) / Decimal(len(values))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def aggregate_daily(rows: Sequence[OverseasPrice]) -> list[dict[str, Any]]:
    """
    Collapse samples into one point per UTC day.

    Each day carries the rounded mean and count of the non-null, positive
    loose and graded yen prices. Days are sorted ascending.
    """
    by_date: dict[str, dict[str, list[int]]] = defaultdict(lambda: {"loose": [], "graded": []})
    for row in rows:
        day = as_utc(row.recorded_at).date().isoformat()
        entry = by_date[day]
        if row.loose_price_jpy and row.loose_price_jpy > 0:
            entry["loose"].append(row.loose_price_jpy)
        if row.graded_price_jpy and row.graded_price_jpy > 0:
            entry["graded"].append(row.graded_price_jpy)

    return [
        {
            "date": day,
            "loose_avg": _average(entry["loose"]),
            "loose_count": len(entry["loose"]) or None,
            "graded_avg": _average(entry["graded"]),
            "graded_count": len(entry["graded"]) or None,
        }
        for day, entry in sorted(by_date.items())
    ]
