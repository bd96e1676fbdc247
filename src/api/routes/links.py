"""Link/unlink endpoints for the Shinsoku and Toreca Lounge buylists."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_session
from src.api.responses import ok
from src.api.schemas import LoungeLinkRequest, ShinsokuLinkRequest
from src.config import LinkTarget
from src.errors import ValidationError
from src.services.linking import link_card, unlink_card

router = APIRouter(prefix="/api", tags=["links"])


def _require_card_id(card_id: str | None) -> str:
    if not card_id:
        raise ValidationError("card_id is required")
    return card_id


@router.post("/shinsoku/link")
async def link_shinsoku(
    body: ShinsokuLinkRequest,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    return ok(await link_card(session, body.card_id, LinkTarget.SHINSOKU, body.shinsoku_item_id))


@router.delete("/shinsoku/link")
async def unlink_shinsoku(
    card_id: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    return ok(await unlink_card(session, _require_card_id(card_id), LinkTarget.SHINSOKU))


@router.post("/toreca-lounge/link")
async def link_lounge(
    body: LoungeLinkRequest,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    return ok(await link_card(session, body.card_id, LinkTarget.TORECA_LOUNGE, body.lounge_card_key))


@router.delete("/toreca-lounge/link")
async def unlink_lounge(
    card_id: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    return ok(await unlink_card(session, _require_card_id(card_id), LinkTarget.TORECA_LOUNGE))
