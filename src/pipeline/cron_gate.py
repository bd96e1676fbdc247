"""
Toreca Tracker — Cron Gate

The platform cron fires every job endpoint on a short fixed cadence. Each
job first asks the gate whether it is actually due, using its row in
cron_schedules:

- No row: run (the table may not be seeded yet).
- enabled = false: skip.
- interval jobs: run on first execution or once interval_minutes have
  elapsed since last_run_at (default 20).
- daily / multi_daily jobs: run when the current UTC hour is listed in
  run_at_hours, the minute is within ±4 of run_at_minute (wrapping across
  the hour boundary), and the job has not already run in this UTC hour.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import NamedTuple

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import ScheduleType, settings
from src.models.base import as_utc
from src.models.cron_schedule import CronSchedule

logger = structlog.get_logger(__name__)


class GateResult(NamedTuple):
    should_run: bool
    reason: str


def check_interval(schedule: CronSchedule, now: datetime) -> GateResult:
    interval_minutes = schedule.interval_minutes or settings.CRON_DEFAULT_INTERVAL_MINUTES
    last_run = as_utc(schedule.last_run_at)
    if last_run is None:
        return GateResult(True, "first-run")

    elapsed = (now - last_run).total_seconds()
    if elapsed >= interval_minutes * 60:
        return GateResult(True, "interval-elapsed")

    remaining = math.ceil((interval_minutes * 60 - elapsed) / 60)
    return GateResult(False, f"interval-not-reached ({remaining}min remaining)")


def check_time_schedule(schedule: CronSchedule, now: datetime) -> GateResult:
    run_at_hours = schedule.run_at_hours or []
    run_at_minute = schedule.run_at_minute or 0
    tolerance = settings.CRON_MINUTE_TOLERANCE

    if now.hour not in run_at_hours:
        scheduled = ",".join(str(h) for h in run_at_hours)
        return GateResult(False, f"not-scheduled-hour (current={now.hour}, scheduled={scheduled})")

    # 58 vs :00 is a 2-minute gap, not 58
    minute_diff = abs(now.minute - run_at_minute)
    if tolerance < minute_diff < 60 - tolerance:
        return GateResult(
            False, f"not-scheduled-minute (current=:{now.minute}, scheduled=:{run_at_minute})"
        )

    last_run = as_utc(schedule.last_run_at)
    if last_run is not None and (last_run.date(), last_run.hour) == (now.date(), now.hour):
        return GateResult(False, "already-run-this-hour")

    return GateResult(True, "scheduled-time-match")


async def should_run_cron_job(
    session: AsyncSession,
    job_name: str,
    now: datetime | None = None,
) -> GateResult:
    """Decide whether job_name is due at now (UTC)."""
    now = now or datetime.now(timezone.utc)
    schedule = await session.get(CronSchedule, job_name)

    if schedule is None:
        logger.warning("cron_schedule_missing", job_name=job_name, note="allowing execution")
        return GateResult(True, "no-schedule-found")

    if not schedule.enabled:
        return GateResult(False, "disabled")

    if schedule.schedule_type == ScheduleType.INTERVAL.value:
        return check_interval(schedule, now)
    return check_time_schedule(schedule, now)


async def mark_cron_job_run(
    session: AsyncSession,
    job_name: str,
    status: str,
    error: str | None = None,
    now: datetime | None = None,
) -> None:
    """Record the outcome of a run. last_error is kept only for failed runs."""
    now = now or datetime.now(timezone.utc)
    await session.execute(
        update(CronSchedule)
        .where(CronSchedule.job_name == job_name)
        .values(
            last_run_at=now,
            last_status=status,
            last_error=(error or "Unknown error") if status == "error" else None,
            updated_at=now,
        )
    )
    await session.commit()
    logger.info("cron_job_marked", job_name=job_name, status=status)
