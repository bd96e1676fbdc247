"""
Tests for the cron gate (src/pipeline/cron_gate.py).

Covers:
- Interval jobs: first run, elapsed, not reached
- Daily / multi-daily jobs: hour match, minute tolerance incl. wrap, once per hour
- Missing and disabled schedules
- mark_cron_job_run bookkeeping
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.cron_schedule import CronSchedule
from src.pipeline.cron_gate import (
    check_interval,
    check_time_schedule,
    mark_cron_job_run,
    should_run_cron_job,
)

NOW = datetime(2026, 10, 19, 9, 2, tzinfo=timezone.utc)


def _interval(minutes: int | None = 20, last_run_at: datetime | None = None) -> CronSchedule:
    return CronSchedule(
        job_name="overseas-price-sync",
        enabled=True,
        schedule_type="interval",
        interval_minutes=minutes,
        last_run_at=last_run_at,
    )


def _daily(hours: list[int], minute: int = 0, last_run_at: datetime | None = None) -> CronSchedule:
    return CronSchedule(
        job_name="exchange-rate-sync",
        enabled=True,
        schedule_type="multi_daily" if len(hours) > 1 else "daily",
        run_at_hours=hours,
        run_at_minute=minute,
        last_run_at=last_run_at,
    )


# ---------------------------------------------------------------------------
# Interval
# ---------------------------------------------------------------------------


class TestCheckInterval:
    def test_first_run(self) -> None:
        assert check_interval(_interval(), NOW) == (True, "first-run")

    def test_elapsed(self) -> None:
        result = check_interval(_interval(last_run_at=NOW - timedelta(minutes=20)), NOW)
        assert result == (True, "interval-elapsed")

    def test_not_reached_reports_remaining(self) -> None:
        result = check_interval(_interval(last_run_at=NOW - timedelta(minutes=5)), NOW)
        assert result.should_run is False
        assert result.reason == "interval-not-reached (15min remaining)"

    def test_default_interval_when_unset(self) -> None:
        schedule = _interval(minutes=None, last_run_at=NOW - timedelta(minutes=19))
        assert check_interval(schedule, NOW).should_run is False
        schedule = _interval(minutes=None, last_run_at=NOW - timedelta(minutes=21))
        assert check_interval(schedule, NOW).should_run is True

    def test_naive_last_run_treated_as_utc(self) -> None:
        naive = (NOW - timedelta(minutes=30)).replace(tzinfo=None)
        assert check_interval(_interval(last_run_at=naive), NOW).should_run is True


# ---------------------------------------------------------------------------
# Daily / multi-daily
# ---------------------------------------------------------------------------


class TestCheckTimeSchedule:
    def test_match(self) -> None:
        assert check_time_schedule(_daily([9], 0), NOW) == (True, "scheduled-time-match")

    def test_wrong_hour(self) -> None:
        result = check_time_schedule(_daily([0, 12], 0), NOW)
        assert result.should_run is False
        assert result.reason.startswith("not-scheduled-hour")

    def test_minute_outside_tolerance(self) -> None:
        result = check_time_schedule(_daily([9], 30), NOW)
        assert result.should_run is False
        assert result.reason.startswith("not-scheduled-minute")

    @pytest.mark.parametrize("minute", [56, 58, 59, 0, 4])
    def test_minute_tolerance_wraps_hour(self, minute: int) -> None:
        now = NOW.replace(minute=minute)
        assert check_time_schedule(_daily([9], 0), now).should_run is True

    @pytest.mark.parametrize("minute", [5, 55])
    def test_minute_just_outside_tolerance(self, minute: int) -> None:
        now = NOW.replace(minute=minute)
        assert check_time_schedule(_daily([9], 0), now).should_run is False

    def test_already_run_this_hour(self) -> None:
        schedule = _daily([9], 0, last_run_at=NOW.replace(minute=0))
        assert check_time_schedule(schedule, NOW) == (False, "already-run-this-hour")

    def test_ran_same_hour_yesterday_is_due(self) -> None:
        schedule = _daily([9], 0, last_run_at=NOW - timedelta(days=1))
        assert check_time_schedule(schedule, NOW).should_run is True


# ---------------------------------------------------------------------------
# should_run_cron_job / mark_cron_job_run
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_missing_schedule_allows_run(db_session: AsyncSession) -> None:
    result = await should_run_cron_job(db_session, "unknown-job", now=NOW)
    assert result == (True, "no-schedule-found")


@pytest.mark.asyncio
async def test_disabled_schedule_skips(db_session: AsyncSession) -> None:
    schedule = _interval()
    schedule.enabled = False
    db_session.add(schedule)
    await db_session.commit()

    result = await should_run_cron_job(db_session, "overseas-price-sync", now=NOW)
    assert result == (False, "disabled")


@pytest.mark.asyncio
async def test_dispatches_on_schedule_type(db_session: AsyncSession) -> None:
    db_session.add_all([_interval(), _daily([3], 0)])
    await db_session.commit()

    assert (await should_run_cron_job(db_session, "overseas-price-sync", now=NOW)).reason == "first-run"
    assert (await should_run_cron_job(db_session, "exchange-rate-sync", now=NOW)).reason.startswith(
        "not-scheduled-hour"
    )


@pytest.mark.asyncio
async def test_mark_run_success_then_gate_blocks(db_session: AsyncSession) -> None:
    db_session.add(_interval())
    await db_session.commit()

    await mark_cron_job_run(db_session, "overseas-price-sync", "success", now=NOW)

    schedule = await db_session.get(CronSchedule, "overseas-price-sync", populate_existing=True)
    assert schedule.last_status == "success"
    assert schedule.last_error is None

    later = NOW + timedelta(minutes=10)
    assert (await should_run_cron_job(db_session, "overseas-price-sync", now=later)).should_run is False


@pytest.mark.asyncio
async def test_mark_run_error_keeps_message(db_session: AsyncSession) -> None:
    db_session.add(_interval())
    await db_session.commit()

    await mark_cron_job_run(db_session, "overseas-price-sync", "error", "PriceCharting down", now=NOW)

    schedule = await db_session.get(CronSchedule, "overseas-price-sync", populate_existing=True)
    assert schedule.last_status == "error"
    assert schedule.last_error == "PriceCharting down"
