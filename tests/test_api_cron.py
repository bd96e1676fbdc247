"""
Tests for the cron job and schedule admin endpoints (src/api/routes/cron.py).

Covers:
- Bearer auth on /api/cron/*
- Gate skips, force=true, run bookkeeping on success and failure
- GET/PUT /api/cron-schedules including 207 partial failure
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest
import respx

from src.config import Settings
from src.models.card import Card
from src.models.cron_schedule import CronSchedule
from src.models.exchange_rate import ExchangeRate

FRANKFURTER_BODY = {"amount": 1.0, "base": "USD", "date": "2026-10-16", "rates": {"JPY": 151.42}}


def _overseas_schedule(last_run_at: datetime | None = None) -> CronSchedule:
    return CronSchedule(
        job_name="overseas-price-sync",
        display_name="Overseas price sync",
        enabled=True,
        schedule_type="interval",
        interval_minutes=20,
        last_run_at=last_run_at,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestCronAuth:
    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/cron/exchange-rate-sync")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_wrong_secret_is_401(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/api/cron/overseas-price-sync", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unset_secret_rejects_everything(
        self, client: httpx.AsyncClient, app, test_settings: Settings
    ) -> None:
        app.state.settings = test_settings.model_copy(update={"CRON_SECRET": ""})
        response = await client.get(
            "/api/cron/exchange-rate-sync", headers={"Authorization": "Bearer "}
        )
        assert response.status_code == 401


# ---------------------------------------------------------------------------
# exchange-rate-sync
# ---------------------------------------------------------------------------


class TestExchangeRateSync:
    @pytest.mark.asyncio
    async def test_runs_without_schedule_row(
        self, client: httpx.AsyncClient, cron_headers, session_factory, test_settings: Settings
    ) -> None:
        with respx.mock(base_url=test_settings.FRANKFURTER_API_URL) as mock:
            mock.get("/latest").mock(return_value=httpx.Response(200, json=FRANKFURTER_BODY))
            response = await client.get("/api/cron/exchange-rate-sync", headers=cron_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["rate"] == 151.42
        assert body["data"]["base_currency"] == "USD"

        async with session_factory() as session:
            rates = (await session.execute(ExchangeRate.__table__.select())).all()
        assert len(rates) == 1

    @pytest.mark.asyncio
    async def test_failure_is_recorded_on_schedule(
        self, client: httpx.AsyncClient, cron_headers, seed, session_factory, test_settings: Settings
    ) -> None:
        await seed(CronSchedule(
            job_name="exchange-rate-sync",
            schedule_type="daily",
            run_at_hours=[0],
            run_at_minute=5,
        ))
        with respx.mock(base_url=test_settings.FRANKFURTER_API_URL) as mock:
            mock.get("/latest").mock(return_value=httpx.Response(502))
            response = await client.get(
                "/api/cron/exchange-rate-sync", params={"force": "true"}, headers=cron_headers
            )

        assert response.status_code == 500
        assert "Frankfurter" in response.json()["error"]

        async with session_factory() as session:
            schedule = await session.get(CronSchedule, "exchange-rate-sync")
        assert schedule.last_status == "error"
        assert "502" in schedule.last_error
        assert schedule.last_run_at is not None


# ---------------------------------------------------------------------------
# overseas-price-sync
# ---------------------------------------------------------------------------


class TestOverseasPriceSync:
    @pytest.mark.asyncio
    async def test_gate_skips_recent_run(
        self, client: httpx.AsyncClient, cron_headers, seed, now: datetime
    ) -> None:
        await seed(_overseas_schedule(last_run_at=now - timedelta(minutes=5)))

        body = (await client.get("/api/cron/overseas-price-sync", headers=cron_headers)).json()

        assert body["success"] is True
        assert body["skipped"] is True
        assert body["reason"].startswith("interval-not-reached")

    @pytest.mark.asyncio
    async def test_disabled_job_skips(self, client: httpx.AsyncClient, cron_headers, seed) -> None:
        schedule = _overseas_schedule()
        schedule.enabled = False
        await seed(schedule)

        body = (await client.get("/api/cron/overseas-price-sync", headers=cron_headers)).json()
        assert body == {"success": True, "skipped": True, "reason": "disabled"}

    @pytest.mark.asyncio
    async def test_force_bypasses_gate(
        self,
        client: httpx.AsyncClient,
        cron_headers,
        seed,
        session_factory,
        now: datetime,
        test_settings: Settings,
    ) -> None:
        await seed(
            _overseas_schedule(last_run_at=now - timedelta(minutes=5)),
            Card(id="card-1", name="Eevee", pricecharting_id="p1"),
            ExchangeRate(base_currency="USD", target_currency="JPY", rate=Decimal("150")),
        )
        product = {"status": "success", "id": "p1", "product-name": "Eevee", "loose-price": 500}
        with respx.mock(base_url=test_settings.PRICECHARTING_BASE_URL) as mock:
            mock.get("/product").mock(return_value=httpx.Response(200, json=product))
            response = await client.get(
                "/api/cron/overseas-price-sync", params={"force": "true"}, headers=cron_headers
            )

        assert response.json() == {
            "success": True,
            "processed": 1,
            "successCount": 1,
            "failed": 0,
            "errors": [],
        }

        async with session_factory() as session:
            schedule = await session.get(CronSchedule, "overseas-price-sync")
        assert schedule.last_status == "success"
        assert schedule.last_error is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -5])
    async def test_non_positive_limit_processes_every_card(
        self,
        client: httpx.AsyncClient,
        cron_headers,
        seed,
        test_settings: Settings,
        limit: int,
    ) -> None:
        await seed(
            Card(id="card-1", name="Eevee", pricecharting_id="p1"),
            Card(id="card-2", name="Vaporeon", pricecharting_id="p2"),
            ExchangeRate(base_currency="USD", target_currency="JPY", rate=Decimal("150")),
        )
        product = {"status": "success", "id": "p", "product-name": "Eevee", "loose-price": 500}
        with respx.mock(base_url=test_settings.PRICECHARTING_BASE_URL) as mock:
            mock.get("/product").mock(return_value=httpx.Response(200, json=product))
            response = await client.get(
                "/api/cron/overseas-price-sync", params={"limit": limit}, headers=cron_headers
            )

        assert response.status_code == 200
        assert response.json()["processed"] == 2


# ---------------------------------------------------------------------------
# /api/cron-schedules
# ---------------------------------------------------------------------------


class TestCronSchedules:
    @pytest.mark.asyncio
    async def test_list(self, client: httpx.AsyncClient, seed) -> None:
        await seed(_overseas_schedule())

        body = (await client.get("/api/cron-schedules")).json()
        assert body["success"] is True
        assert [s["job_name"] for s in body["data"]] == ["overseas-price-sync"]
        assert body["data"][0]["interval_minutes"] == 20

    @pytest.mark.asyncio
    async def test_update_all_succeed(self, client: httpx.AsyncClient, seed, session_factory) -> None:
        await seed(_overseas_schedule())

        response = await client.put(
            "/api/cron-schedules",
            json=[{"job_name": "overseas-price-sync", "enabled": False, "interval_minutes": 60}],
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"job_name": "overseas-price-sync", "success": True}]

        async with session_factory() as session:
            schedule = await session.get(CronSchedule, "overseas-price-sync")
        assert schedule.enabled is False
        assert schedule.interval_minutes == 60

    @pytest.mark.asyncio
    async def test_single_object_body(self, client: httpx.AsyncClient, seed) -> None:
        await seed(_overseas_schedule())
        response = await client.put(
            "/api/cron-schedules", json={"job_name": "overseas-price-sync", "run_at_minute": 5}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_partial_failure_is_207(self, client: httpx.AsyncClient, seed) -> None:
        await seed(_overseas_schedule())

        response = await client.put(
            "/api/cron-schedules",
            json=[
                {"job_name": "overseas-price-sync", "enabled": False},
                {"job_name": "no-such-job", "enabled": True},
                {"enabled": True},
            ],
        )

        assert response.status_code == 207
        results = response.json()["data"]
        assert results[0] == {"job_name": "overseas-price-sync", "success": True}
        assert results[1] == {"job_name": "no-such-job", "success": False, "error": "schedule not found"}
        assert results[2]["error"] == "job_name is required"

    @pytest.mark.asyncio
    async def test_invalid_json_is_400(self, client: httpx.AsyncClient) -> None:
        response = await client.put(
            "/api/cron-schedules", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid JSON"}
