"""Cron schedule listing and batch updates for the admin dashboard."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.cron_schedule import CronSchedule

logger = structlog.get_logger(__name__)


async def list_schedules(session: AsyncSession) -> list[dict[str, Any]]:
    rows = (await session.execute(select(CronSchedule).order_by(CronSchedule.job_name))).scalars()
    return [row.to_dict() for row in rows]


def _update_values(item: dict[str, Any]) -> dict[str, Any]:
    """Only well-typed fields are applied; anything else in the item is ignored."""
    values: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
    if isinstance(item.get("enabled"), bool):
        values["enabled"] = item["enabled"]
    interval = item.get("interval_minutes")
    if isinstance(interval, int) and not isinstance(interval, bool):
        values["interval_minutes"] = interval
    if isinstance(item.get("run_at_hours"), list):
        values["run_at_hours"] = item["run_at_hours"]
    minute = item.get("run_at_minute")
    if isinstance(minute, int) and not isinstance(minute, bool):
        values["run_at_minute"] = minute
    return values


async def update_schedules(
    session: AsyncSession,
    items: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Apply each update independently and report one result per item.

    A failing item never stops the others. Unknown job names count as
    failures.
    """
    results: list[dict[str, Any]] = []
    for item in items:
        job_name = item.get("job_name") if isinstance(item, dict) else None
        if not job_name:
            results.append({"job_name": "unknown", "success": False, "error": "job_name is required"})
            continue

        try:
            result = await session.execute(
                update(CronSchedule)
                .where(CronSchedule.job_name == job_name)
                .values(**_update_values(item))
            )
            if result.rowcount == 0:
                await session.rollback()
                results.append({"job_name": job_name, "success": False, "error": "schedule not found"})
                continue
            await session.commit()
            results.append({"job_name": job_name, "success": True})
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("cron_schedule_update_failed", job_name=job_name, error=str(e))
            results.append({"job_name": job_name, "success": False, "error": str(e)})

    return results
