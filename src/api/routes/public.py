"""
Public read-only API, gated by X-API-Key.

Responses carry permissive CORS headers so third-party sites can call the
API from the browser.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_session, get_settings, require_api_key
from src.api.responses import CORS_HEADERS, ok
from src.config import Settings
from src.errors import NotFoundError, ValidationError
from src.models.card import Card
from src.services.history import aggregate_daily, fetch_samples, lower_bound_for_days

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/cards/{card_id}/prices", dependencies=[Depends(require_api_key)])
async def public_card_prices(
    card_id: str,
    days: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    if days is None:
        days = settings.PUBLIC_DEFAULT_DAYS
    if days < 0:
        raise ValidationError("days must be zero or positive")

    card = await session.get(Card, card_id)
    if card is None:
        raise NotFoundError("Card not found")

    bound = lower_bound_for_days(days, datetime.now(timezone.utc))
    rows = await fetch_samples(session, card_id, bound)

    return ok(
        aggregate_daily(rows),
        card={
            "id": card.id,
            "name": card.name,
            "card_number": card.card_number,
            "image_url": card.image_url,
        },
        period={"days": days},
        headers=CORS_HEADERS,
    )


@router.options("/cards/{card_id}/prices")
async def public_card_prices_preflight(card_id: str) -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)
