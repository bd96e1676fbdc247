"""
Cron-triggered jobs and the schedule admin endpoints.

Job endpoints require ``Authorization: Bearer <CRON_SECRET>``, then ask the
cron gate whether the job is due (``force=true`` skips the gate). Every run
that gets past the gate is recorded on its cron_schedules row.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_pricecharting_client, get_session, get_settings, require_cron_secret
from src.api.responses import ok
from src.config import Settings
from src.errors import ValidationError
from src.pipeline.cron_gate import mark_cron_job_run, should_run_cron_job
from src.pipeline.exchange_rate import fetch_usd_jpy_rate, store_rate
from src.pipeline.overseas_sync import sync_linked_cards
from src.pipeline.pricecharting import PriceChartingClient
from src.services.cron_schedules import list_schedules, update_schedules

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["cron"])

EXCHANGE_RATE_JOB = "exchange-rate-sync"
OVERSEAS_PRICE_JOB = "overseas-price-sync"


async def _run_gated(
    session: AsyncSession,
    job_name: str,
    force: bool,
    job: Callable[[], Awaitable[dict[str, Any]]],
) -> JSONResponse:
    if not force:
        gate = await should_run_cron_job(session, job_name)
        if not gate.should_run:
            logger.info("cron_job_skipped", job_name=job_name, reason=gate.reason)
            return ok(skipped=True, reason=gate.reason)

    logger.info("cron_job_start", job_name=job_name, forced=force)
    try:
        result = await job()
    except Exception as e:
        await session.rollback()
        await mark_cron_job_run(session, job_name, "error", str(e))
        raise

    await mark_cron_job_run(session, job_name, "success")
    return ok(**result)


@router.get("/cron/exchange-rate-sync", dependencies=[Depends(require_cron_secret)])
async def exchange_rate_sync(
    force: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    async def job() -> dict[str, Any]:
        rate = await fetch_usd_jpy_rate(api_url=settings.FRANKFURTER_API_URL)
        row = await store_rate(session, rate)
        return {
            "rate": float(rate),
            "data": {
                "id": row.id,
                "base_currency": row.base_currency,
                "target_currency": row.target_currency,
                "rate": float(row.rate),
            },
        }

    return await _run_gated(session, EXCHANGE_RATE_JOB, force, job)


@router.get("/cron/overseas-price-sync", dependencies=[Depends(require_cron_secret)])
async def overseas_price_sync(
    limit: int | None = Query(None),
    force: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    client: PriceChartingClient = Depends(get_pricecharting_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    async def job() -> dict[str, Any]:
        result = await sync_linked_cards(
            session,
            client,
            limit=limit,
            delay_seconds=settings.PRICECHARTING_REQUEST_DELAY_SECONDS,
        )
        return result.to_response()

    return await _run_gated(session, OVERSEAS_PRICE_JOB, force, job)


@router.get("/cron-schedules")
async def get_cron_schedules(session: AsyncSession = Depends(get_session)) -> JSONResponse:
    return ok(await list_schedules(session))


@router.put("/cron-schedules")
async def put_cron_schedules(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON")

    items = body if isinstance(body, list) else [body]
    results = await update_schedules(session, items)

    has_errors = any(not r["success"] for r in results)
    return ok(
        results,
        status_code=status.HTTP_207_MULTI_STATUS if has_errors else status.HTTP_200_OK,
    )
