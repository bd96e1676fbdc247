"""Request bodies accepted by the JSON endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PriceChartingLinkRequest(BaseModel):
    card_id: str = Field(..., min_length=1)
    pricecharting_id: str = Field(..., min_length=1)


class ShinsokuLinkRequest(BaseModel):
    card_id: str = Field(..., min_length=1)
    shinsoku_item_id: str = Field(..., min_length=1)


class LoungeLinkRequest(BaseModel):
    card_id: str = Field(..., min_length=1)
    lounge_card_key: str = Field(..., min_length=1)


class InventoryAdjustRequest(BaseModel):
    inventory_id: str = Field(..., min_length=1)
    quantity_change: int
    reason: str = Field(..., min_length=1)
    notes: str | None = None
