"""Point-of-sale inventory endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_session
from src.api.responses import ok
from src.api.schemas import InventoryAdjustRequest
from src.services.inventory import adjust_inventory

router = APIRouter(prefix="/api/pos", tags=["pos"])


@router.post("/history/adjust")
async def adjust(
    body: InventoryAdjustRequest,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    inventory = await adjust_inventory(
        session,
        body.inventory_id,
        body.quantity_change,
        body.reason,
        body.notes,
    )
    return ok(inventory=inventory)
