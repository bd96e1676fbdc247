"""
Toreca Tracker — Overseas Price Model

Append-only log of PriceCharting snapshots per card. Never updated: each
sync appends a new row. USD prices are stored in pennies exactly as the
API returns them; JPY prices are whole yen at the rate used for the sync.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, INTEGER, TIMESTAMP, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, new_id, utcnow


class OverseasPrice(Base):
    """
    One price sample for a card.

    Index: (card_id, recorded_at) supports the windowed history scans.
    """

    __tablename__ = "overseas_prices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    card_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False
    )
    pricecharting_id: Mapped[str | None] = mapped_column(String, nullable=True)

    loose_price_usd: Mapped[int | None] = mapped_column(INTEGER, nullable=True, comment="pennies")
    cib_price_usd: Mapped[int | None] = mapped_column(INTEGER, nullable=True, comment="pennies")
    new_price_usd: Mapped[int | None] = mapped_column(INTEGER, nullable=True, comment="pennies")
    graded_price_usd: Mapped[int | None] = mapped_column(INTEGER, nullable=True, comment="pennies")

    exchange_rate: Mapped[Decimal | None] = mapped_column(
        DECIMAL(12, 6), nullable=True, comment="USD/JPY rate used for the yen columns"
    )
    loose_price_jpy: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    graded_price_jpy: Mapped[int | None] = mapped_column(INTEGER, nullable=True)

    recorded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_overseas_prices_card_recorded", "card_id", "recorded_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<OverseasPrice card_id={self.card_id!r} loose={self.loose_price_usd} "
            f"graded={self.graded_price_usd} at={self.recorded_at}>"
        )
