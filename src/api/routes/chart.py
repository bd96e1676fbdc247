"""Price chart endpoints: windowed history and card search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_session, get_settings
from src.api.responses import ok
from src.config import Settings
from src.errors import ValidationError
from src.services.history import get_price_history, search_cards_with_latest_price

router = APIRouter(prefix="/api/chart", tags=["chart"])


@router.get("/card/{card_id}/history")
async def card_price_history(
    card_id: str,
    period: str | None = Query(None, description="30d | 90d | 1y | all; anything else means 30d"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    card_id = card_id.strip()
    if not card_id:
        raise ValidationError("card_id is required")

    history = await get_price_history(session, card_id, period)
    return ok(
        history["series"],
        period=history["period"],
        **{"from": history["from"]},
        headers={"Cache-Control": settings.HISTORY_CACHE_CONTROL},
    )


@router.get("/search")
async def chart_search(
    q: str = Query("", description="Substring of the card name"),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    return ok(await search_cards_with_latest_price(session, q))
