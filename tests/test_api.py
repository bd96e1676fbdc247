"""
Tests for the FastAPI application (src/main.py, src/api/responses.py) and
the chart endpoints (src/api/routes/chart.py).

Covers:
- /api/health
- Envelope shape for success, TrackerError, validation errors and unexpected errors
- Price history window + Cache-Control, card search
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from src.config import Settings
from src.models.card import Card
from src.models.overseas_price import OverseasPrice


def _sample(card_id: str, recorded_at: datetime, loose_jpy: int) -> OverseasPrice:
    return OverseasPrice(
        card_id=card_id,
        pricecharting_id="6910",
        loose_price_usd=1000,
        graded_price_usd=None,
        exchange_rate=Decimal("150"),
        loose_price_jpy=loose_jpy,
        graded_price_jpy=None,
        recorded_at=recorded_at,
    )


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unexpected_error_becomes_500_envelope(client: httpx.AsyncClient) -> None:
    with patch("src.api.routes.chart.get_price_history", side_effect=RuntimeError("db exploded")):
        response = await client.get("/api/chart/card/card-1/history")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "db exploded"}


@pytest.mark.asyncio
async def test_query_validation_error_is_400(client: httpx.AsyncClient) -> None:
    response = await client.get("/api/overseas-prices", params={"card_id": "c", "days": "abc"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "days" in body["error"]


# ---------------------------------------------------------------------------
# /api/chart/card/{id}/history
# ---------------------------------------------------------------------------


class TestChartHistory:
    @pytest.mark.asyncio
    async def test_window_and_headers(
        self, client: httpx.AsyncClient, seed, now: datetime, test_settings: Settings
    ) -> None:
        await seed(Card(id="card-1", name="Lugia V"))
        await seed(
            _sample("card-1", now - timedelta(days=60), 2),
            _sample("card-1", now - timedelta(days=5), 1),
            _sample("card-1", now - timedelta(days=200), 3),
        )

        response = await client.get("/api/chart/card/card-1/history", params={"period": "90d"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == test_settings.HISTORY_CACHE_CONTROL
        body = response.json()
        assert body["success"] is True
        assert body["period"] == "90d"
        assert body["from"] is not None
        assert [p["loose_price_jpy"] for p in body["data"]] == [2, 1]
        assert body["data"][0]["graded_price_jpy"] == 0

    @pytest.mark.asyncio
    async def test_unknown_period_is_30d(self, client: httpx.AsyncClient, seed, now: datetime) -> None:
        await seed(Card(id="card-1", name="Lugia V"))
        await seed(
            _sample("card-1", now - timedelta(days=60), 2),
            _sample("card-1", now - timedelta(days=5), 1),
        )

        body = (await client.get("/api/chart/card/card-1/history?period=2w")).json()
        assert body["period"] == "30d"
        assert len(body["data"]) == 1

    @pytest.mark.asyncio
    async def test_all_period(self, client: httpx.AsyncClient, seed, now: datetime) -> None:
        await seed(Card(id="card-1", name="Lugia V"))
        await seed(_sample("card-1", now - timedelta(days=900), 9))

        body = (await client.get("/api/chart/card/card-1/history?period=all")).json()
        assert body["from"] is None
        assert len(body["data"]) == 1

    @pytest.mark.asyncio
    async def test_blank_card_id_is_400(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/chart/card/%20/history")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "card_id is required"}

    @pytest.mark.asyncio
    async def test_unknown_card_is_empty_series(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/chart/card/nope/history")).json()
        assert body["success"] is True
        assert body["data"] == []


# ---------------------------------------------------------------------------
# /api/chart/search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_chart_search(client: httpx.AsyncClient, seed, now: datetime) -> None:
    await seed(Card(id="card-1", name="Lugia V"), Card(id="card-2", name="Ho-Oh V"))
    await seed(_sample("card-1", now - timedelta(days=1), 4200))

    body = (await client.get("/api/chart/search", params={"q": "lugia"})).json()
    assert body["success"] is True
    assert [c["id"] for c in body["data"]] == ["card-1"]
    assert body["data"][0]["loose_price_jpy"] == 4200


@pytest.mark.asyncio
async def test_chart_search_empty_query(client: httpx.AsyncClient) -> None:
    body = (await client.get("/api/chart/search")).json()
    assert body == {"success": True, "data": []}
