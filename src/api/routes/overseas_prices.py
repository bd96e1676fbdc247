"""
PriceCharting-backed overseas price endpoints: raw listing, candidate
search, link/unlink, and a manual single-card refresh.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import (
    enforce_search_rate_limit,
    get_pricecharting_client,
    get_session,
    get_settings,
)
from src.api.responses import ok
from src.api.schemas import PriceChartingLinkRequest
from src.config import LinkTarget, Settings
from src.errors import TrackerError, ValidationError
from src.pipeline.overseas_sync import record_card_price
from src.pipeline.pricecharting import PriceChartingClient
from src.services.history import list_overseas_prices
from src.services.linking import link_card, unlink_card

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/overseas-prices", tags=["overseas-prices"])


@router.get("")
async def get_overseas_prices(
    card_id: str | None = Query(None),
    days: int | None = Query(None, description="Lookback in days; 0 returns everything"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    if not card_id:
        raise ValidationError("card_id is required")
    if days is None:
        days = settings.OVERSEAS_DEFAULT_DAYS
    return ok(await list_overseas_prices(session, card_id, days))


@router.get("/search", dependencies=[Depends(enforce_search_rate_limit)])
async def search_overseas_products(
    q: str | None = Query(None),
    client: PriceChartingClient = Depends(get_pricecharting_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    query = (q or "").strip()
    if len(query) < settings.PRICECHARTING_SEARCH_MIN_LENGTH:
        raise ValidationError(
            f"Search text must be at least {settings.PRICECHARTING_SEARCH_MIN_LENGTH} characters"
        )
    return ok(await client.search_products(query))


@router.post("/link")
async def link_pricecharting(
    body: PriceChartingLinkRequest,
    session: AsyncSession = Depends(get_session),
    client: PriceChartingClient = Depends(get_pricecharting_client),
) -> JSONResponse:
    # The product name is a convenience; failing to fetch it never blocks the link
    product_name = ""
    try:
        product = await client.get_product(body.pricecharting_id)
        product_name = product.product_name
    except TrackerError as e:
        logger.warning(
            "pricecharting_name_lookup_failed",
            pricecharting_id=body.pricecharting_id,
            error=str(e),
        )

    state = await link_card(
        session,
        body.card_id,
        LinkTarget.PRICECHARTING,
        body.pricecharting_id,
        companion=product_name,
    )
    return ok(state)


@router.delete("/link")
async def unlink_pricecharting(
    card_id: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    if not card_id:
        raise ValidationError("card_id is required")
    return ok(await unlink_card(session, card_id, LinkTarget.PRICECHARTING))


@router.post("/update")
async def refresh_overseas_price(
    body: PriceChartingLinkRequest,
    session: AsyncSession = Depends(get_session),
    client: PriceChartingClient = Depends(get_pricecharting_client),
) -> JSONResponse:
    return ok(await record_card_price(session, client, body.card_id, body.pricecharting_id))
