"""
JustTCG proxy endpoints.

Both endpoints sit behind a per-key TTL cache. A fresh hit is returned
with ``cached: true`` and never touches the API. On a miss the full result
is fetched (every page, for cards), stored, and returned with
``cached: false``. An upstream failure stores nothing.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.api.deps import get_cards_cache, get_justtcg_client, get_sets_cache, get_settings
from src.api.responses import ok
from src.cache import TTLCache, cached_response
from src.config import Settings
from src.errors import ValidationError
from src.pipeline.justtcg import JustTCGClient

router = APIRouter(prefix="/api/justtcg", tags=["justtcg"])


@router.get("/sets")
async def list_sets(
    game: str | None = Query(None),
    cache: TTLCache = Depends(get_sets_cache),
    client: JustTCGClient = Depends(get_justtcg_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    game = game or settings.JUSTTCG_DEFAULT_GAME

    hit = cache.get(game)
    if hit is not None:
        return ok(**cached_response(hit, cached=True))

    page = await client.get_sets(game)
    payload = {"data": page.data, "usage": page.usage.to_response()}
    cache.set(game, payload)
    return ok(**cached_response(payload, cached=False))


@router.get("/cards")
async def list_cards(
    set_id: str | None = Query(None, alias="set"),
    game: str | None = Query(None),
    cache: TTLCache = Depends(get_cards_cache),
    client: JustTCGClient = Depends(get_justtcg_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    if not set_id:
        raise ValidationError("set parameter is required")
    game = game or settings.JUSTTCG_DEFAULT_GAME
    cache_key = f"{game}:{set_id}"

    hit = cache.get(cache_key)
    if hit is not None:
        return ok(**cached_response(hit, cached=True))

    listing = await client.fetch_all_cards(set_id, game=game, page_size=settings.JUSTTCG_PAGE_SIZE)
    payload = {
        "data": listing.cards,
        "total": listing.total,
        "usage": listing.usage.to_response(),
    }
    cache.set(cache_key, payload)
    return ok(**cached_response(payload, cached=False))
