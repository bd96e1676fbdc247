"""
Toreca Tracker — External Identifier Linking

Associates a local card with an identifier from an external system. Each
target owns two columns on the cards table: the external id and a second
column written in the same UPDATE (a linked-at timestamp, or for
PriceCharting the product name captured at link time).

Unlinking sets both columns to NULL. No target checks that the external
id exists upstream, and targets are independent of each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import LinkTarget
from src.errors import NotFoundError
from src.models.base import as_utc
from src.models.card import Card

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LinkColumns:
    id_column: str
    companion_column: str
    companion_is_timestamp: bool


LINK_COLUMNS: dict[LinkTarget, LinkColumns] = {
    LinkTarget.PRICECHARTING: LinkColumns("pricecharting_id", "pricecharting_name", False),
    LinkTarget.SHINSOKU: LinkColumns("shinsoku_item_id", "shinsoku_linked_at", True),
    LinkTarget.TORECA_LOUNGE: LinkColumns("lounge_card_key", "lounge_linked_at", True),
}


def _link_state(card: Card, target: LinkTarget) -> dict[str, Any]:
    cols = LINK_COLUMNS[target]
    companion = getattr(card, cols.companion_column)
    if isinstance(companion, datetime):
        companion = as_utc(companion).isoformat()
    return {
        "card_id": card.id,
        cols.id_column: getattr(card, cols.id_column),
        cols.companion_column: companion,
    }


async def _apply(
    session: AsyncSession,
    card_id: str,
    target: LinkTarget,
    values: dict[str, Any],
) -> dict[str, Any]:
    stmt = (
        update(Card)
        .where(Card.id == card_id)
        .values(**values, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError(f"Card not found: {card_id}")
    await session.commit()

    card = await session.get(Card, card_id, populate_existing=True)
    return _link_state(card, target)


async def link_card(
    session: AsyncSession,
    card_id: str,
    target: LinkTarget,
    external_id: str,
    companion: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Set the external id for target on card_id.

    For timestamp targets the companion column is set to ``now``; for
    PriceCharting it is set to ``companion`` (the product name, may be "").
    """
    cols = LINK_COLUMNS[target]
    if cols.companion_is_timestamp:
        companion_value: Any = now or datetime.now(timezone.utc)
    else:
        companion_value = companion or ""

    state = await _apply(
        session,
        card_id,
        target,
        {cols.id_column: external_id, cols.companion_column: companion_value},
    )
    logger.info("card_linked", card_id=card_id, target=target.value, external_id=external_id)
    return state


async def unlink_card(session: AsyncSession, card_id: str, target: LinkTarget) -> dict[str, Any]:
    """Clear both link columns for target on card_id."""
    cols = LINK_COLUMNS[target]
    state = await _apply(
        session,
        card_id,
        target,
        {cols.id_column: None, cols.companion_column: None},
    )
    logger.info("card_unlinked", card_id=card_id, target=target.value)
    return state
