"""
Toreca Tracker — JustTCG API Client

Fetches set listings and per-set card prices from the JustTCG API.

Every JustTCG response carries ``data``, a ``meta`` pagination block and a
``_metadata`` usage block. This module parses all three and walks the
card listing page by page. There are no retries: any failed page aborts
the whole fetch.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from src.config import settings
from src.errors import UpstreamError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Pydantic Response Models
# ---------------------------------------------------------------------------


class JustTCGMeta(BaseModel):
    """Pagination block. Missing ``meta`` means a single, final page."""

    model_config = {"populate_by_name": True}

    total: int = 0
    limit: int = 0
    offset: int = 0
    has_more: bool = Field(default=False, alias="hasMore")


class JustTCGUsage(BaseModel):
    """API quota usage, reshaped from the raw ``_metadata`` block."""

    daily_used: int = 0
    daily_limit: int = 0
    daily_remaining: int = 0
    monthly_used: int = 0
    monthly_limit: int = 0
    monthly_remaining: int = 0

    @classmethod
    def from_metadata(cls, md: dict[str, Any] | None) -> JustTCGUsage:
        md = md or {}

        def _value(key: str, default: int) -> int:
            value = md.get(key)
            return default if value is None else value

        return cls(
            daily_used=_value("apiDailyRequestsUsed", 0),
            daily_limit=_value("apiDailyLimit", settings.JUSTTCG_DEFAULT_DAILY_LIMIT),
            daily_remaining=_value("apiDailyRequestsRemaining", 0),
            monthly_used=_value("apiRequestsUsed", 0),
            monthly_limit=_value("apiRequestLimit", settings.JUSTTCG_DEFAULT_MONTHLY_LIMIT),
            monthly_remaining=_value("apiRequestsRemaining", 0),
        )

    def to_response(self) -> dict[str, int]:
        return {
            "dailyUsed": self.daily_used,
            "dailyLimit": self.daily_limit,
            "dailyRemaining": self.daily_remaining,
            "monthlyUsed": self.monthly_used,
            "monthlyLimit": self.monthly_limit,
            "monthlyRemaining": self.monthly_remaining,
        }


class JustTCGPage(BaseModel):
    """A single response page: raw data items plus pagination and usage."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    meta: JustTCGMeta = Field(default_factory=JustTCGMeta)
    usage: JustTCGUsage = Field(default_factory=JustTCGUsage)


class JustTCGCardListing(BaseModel):
    """Every card of a set, concatenated across pages."""

    cards: list[dict[str, Any]] = Field(default_factory=list)
    usage: JustTCGUsage = Field(default_factory=JustTCGUsage)
    pages: int = 0

    @property
    def total(self) -> int:
        return len(self.cards)


# ---------------------------------------------------------------------------
# API Client
# ---------------------------------------------------------------------------


class JustTCGClient:
    """
    Async client for the JustTCG API.

    Usage:
        async with JustTCGClient() as client:
            sets = await client.get_sets("pokemon-japan")
            listing = await client.fetch_all_cards("sv1", game="pokemon-japan")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.JUSTTCG_API_KEY
        self._base_url = base_url or settings.JUSTTCG_BASE_URL
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> JustTCGClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"x-api-key": self._api_key},
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> JustTCGPage:
        """GET a JustTCG endpoint and parse its envelope. Raises UpstreamError on any failure."""
        assert self._client is not None, "Client not initialized. Use 'async with'."

        if not self._api_key:
            raise UpstreamError("JUSTTCG_API_KEY is not configured")

        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "justtcg_http_error",
                status_code=e.response.status_code,
                path=path,
            )
            raise UpstreamError(
                f"JustTCG API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            logger.error(
                "justtcg_request_error",
                error=str(e),
                error_type=type(e).__name__,
                path=path,
            )
            raise UpstreamError(f"JustTCG API request failed: {e}") from e

        if body.get("error"):
            raise UpstreamError(f"JustTCG API error: {body['error']} ({body.get('code')})")

        return JustTCGPage(
            data=body.get("data") or [],
            meta=JustTCGMeta.model_validate(body.get("meta") or {}),
            usage=JustTCGUsage.from_metadata(body.get("_metadata")),
        )

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def get_sets(self, game: str | None = None) -> JustTCGPage:
        """List the sets of a game, newest first."""
        game = game or settings.JUSTTCG_DEFAULT_GAME
        logger.info("justtcg_fetch_sets", game=game)
        return await self._request(
            "/sets",
            params={"game": game, "orderBy": "release_date", "order": "desc"},
        )

    async def get_cards(
        self,
        set_id: str,
        offset: int | None = None,
        limit: int | None = None,
        game: str | None = None,
    ) -> JustTCGPage:
        """Fetch one page of a set's cards, most expensive first."""
        params: dict[str, Any] = {
            "game": game or settings.JUSTTCG_DEFAULT_GAME,
            "set": set_id,
            "orderBy": "price",
            "order": "desc",
        }
        if offset is not None:
            params["offset"] = str(offset)
        if limit:
            params["limit"] = str(limit)
        return await self._request("/cards", params=params)

    async def fetch_all_cards(
        self,
        set_id: str,
        game: str | None = None,
        page_size: int | None = None,
    ) -> JustTCGCardListing:
        """
        Walk every page of a set's card listing.

        Pages of ``page_size`` are requested until the API reports
        ``hasMore: false``. Usage metadata comes from the final page.
        An exception on any page propagates; nothing partial is returned.
        """
        page_size = page_size or settings.JUSTTCG_PAGE_SIZE
        cards: list[dict[str, Any]] = []
        usage = JustTCGUsage()
        offset = 0
        pages = 0

        while True:
            page = await self.get_cards(set_id, offset=offset, limit=page_size, game=game)
            cards.extend(page.data)
            usage = page.usage
            pages += 1

            if not page.meta.has_more:
                break
            offset += page_size

        logger.info(
            "justtcg_fetch_cards_complete",
            set_id=set_id,
            game=game,
            pages=pages,
            results_count=len(cards),
            daily_remaining=usage.daily_remaining,
        )
        return JustTCGCardListing(cards=cards, usage=usage, pages=pages)
