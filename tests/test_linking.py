"""
Tests for external identifier linking (src/services/linking.py).

Covers link/unlink for each target, companion columns, independence of
targets, and NotFoundError for unknown cards.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import LinkTarget
from src.errors import NotFoundError
from src.models.card import Card
from src.services.linking import link_card, unlink_card

LINKED_AT = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def card(db_session: AsyncSession) -> Card:
    card = Card(id="card-1", name="Umbreon VMAX")
    db_session.add(card)
    await db_session.commit()
    return card


class TestPriceChartingLink:
    @pytest.mark.asyncio
    async def test_link_sets_id_and_name(self, db_session: AsyncSession, card: Card) -> None:
        state = await link_card(
            db_session, card.id, LinkTarget.PRICECHARTING, "6910", companion="Umbreon VMAX #215"
        )
        assert state == {
            "card_id": "card-1",
            "pricecharting_id": "6910",
            "pricecharting_name": "Umbreon VMAX #215",
        }

        stored = await db_session.get(Card, card.id, populate_existing=True)
        assert stored.pricecharting_id == "6910"

    @pytest.mark.asyncio
    async def test_link_without_name_stores_empty_string(
        self, db_session: AsyncSession, card: Card
    ) -> None:
        state = await link_card(db_session, card.id, LinkTarget.PRICECHARTING, "6910")
        assert state["pricecharting_name"] == ""

    @pytest.mark.asyncio
    async def test_unlink_clears_both_columns(self, db_session: AsyncSession, card: Card) -> None:
        await link_card(db_session, card.id, LinkTarget.PRICECHARTING, "6910", companion="X")
        state = await unlink_card(db_session, card.id, LinkTarget.PRICECHARTING)

        assert state["pricecharting_id"] is None
        assert state["pricecharting_name"] is None


class TestTimestampTargets:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "target, id_column, at_column",
        [
            (LinkTarget.SHINSOKU, "shinsoku_item_id", "shinsoku_linked_at"),
            (LinkTarget.TORECA_LOUNGE, "lounge_card_key", "lounge_linked_at"),
        ],
    )
    async def test_link_then_unlink(
        self,
        db_session: AsyncSession,
        card: Card,
        target: LinkTarget,
        id_column: str,
        at_column: str,
    ) -> None:
        state = await link_card(db_session, card.id, target, "ext-42", now=LINKED_AT)
        assert state[id_column] == "ext-42"
        assert state[at_column] == LINKED_AT.isoformat()

        state = await unlink_card(db_session, card.id, target)
        assert state[id_column] is None
        assert state[at_column] is None

    @pytest.mark.asyncio
    async def test_targets_are_independent(self, db_session: AsyncSession, card: Card) -> None:
        await link_card(db_session, card.id, LinkTarget.SHINSOKU, "s-1", now=LINKED_AT)
        await link_card(db_session, card.id, LinkTarget.TORECA_LOUNGE, "l-1", now=LINKED_AT)
        await unlink_card(db_session, card.id, LinkTarget.SHINSOKU)

        stored = await db_session.get(Card, card.id, populate_existing=True)
        assert stored.shinsoku_item_id is None
        assert stored.lounge_card_key == "l-1"

    @pytest.mark.asyncio
    async def test_relink_overwrites(self, db_session: AsyncSession, card: Card) -> None:
        await link_card(db_session, card.id, LinkTarget.SHINSOKU, "s-1", now=LINKED_AT)
        state = await link_card(db_session, card.id, LinkTarget.SHINSOKU, "s-2", now=LINKED_AT)
        assert state["shinsoku_item_id"] == "s-2"


class TestUnknownCard:
    @pytest.mark.asyncio
    async def test_link_unknown_card(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await link_card(db_session, "missing", LinkTarget.SHINSOKU, "s-1")

    @pytest.mark.asyncio
    async def test_unlink_unknown_card(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await unlink_card(db_session, "missing", LinkTarget.PRICECHARTING)
        assert exc_info.value.status_code == 404
