"""
Toreca Tracker — Card Model

Local catalog entity. Optionally linked to one identifier per external
system (PriceCharting, Shinsoku, Toreca Lounge). Each link is set and
cleared independently; nothing enforces consistency between systems.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import TIMESTAMP, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, new_id, utcnow


class Card(Base):
    """A card tracked by the shop."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    card_number: Mapped[str | None] = mapped_column(String, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    # PriceCharting link: product id + product name captured at link time
    pricecharting_id: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True, comment="PriceCharting product id"
    )
    pricecharting_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # Shinsoku buylist link
    shinsoku_item_id: Mapped[str | None] = mapped_column(String, nullable=True)
    shinsoku_linked_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Toreca Lounge link
    lounge_card_key: Mapped[str | None] = mapped_column(String, nullable=True)
    lounge_linked_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Card id={self.id!r} name={self.name!r} pricecharting_id={self.pricecharting_id!r}>"
