"""
Toreca Tracker — Public API Key Model

Keys gate the read-only /api/public endpoints via the X-API-Key header.
Issued with scripts/add_api_key.py.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, INTEGER, TIMESTAMP, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, new_id, utcnow


class ApiKey(Base):
    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    rate_limit: Mapped[int] = mapped_column(INTEGER, nullable=False, default=60)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    last_used_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ApiKey name={self.name!r} active={self.is_active}>"
