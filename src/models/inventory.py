"""
Toreca Tracker — POS Inventory & History Models

pos_inventory holds the on-hand quantity per stock item. pos_history is an
append-only audit of every quantity change. Lot-tracked items are adjusted
through their lots, never directly.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import INTEGER, TIMESTAMP, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, new_id, utcnow

TRACKING_MODE_QUANTITY = "quantity"
TRACKING_MODE_LOT = "lot"


class PosInventory(Base):
    __tablename__ = "pos_inventory"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    tracking_mode: Mapped[str] = mapped_column(
        String, nullable=False, default=TRACKING_MODE_QUANTITY, comment="quantity | lot"
    )
    quantity: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PosInventory id={self.id!r} qty={self.quantity} mode={self.tracking_mode!r}>"


class PosHistory(Base):
    __tablename__ = "pos_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    inventory_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pos_inventory.id", ondelete="CASCADE"), nullable=False
    )
    action_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity_change: Mapped[int] = mapped_column(INTEGER, nullable=False)
    quantity_before: Mapped[int] = mapped_column(INTEGER, nullable=False)
    quantity_after: Mapped[int] = mapped_column(INTEGER, nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<PosHistory inventory_id={self.inventory_id!r} {self.action_type} "
            f"{self.quantity_before}->{self.quantity_after}>"
        )
