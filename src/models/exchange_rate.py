"""
Toreca Tracker — Exchange Rate Model

Append-only daily snapshots of a currency pair. The latest row for
USD/JPY is what price syncs convert with.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, TIMESTAMP, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, new_id, utcnow


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    target_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[Decimal] = mapped_column(DECIMAL(12, 6), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_exchange_rates_pair_recorded", "base_currency", "target_currency", "recorded_at"),
    )

    def __repr__(self) -> str:
        return f"<ExchangeRate {self.base_currency}/{self.target_currency}={self.rate} at={self.recorded_at}>"
