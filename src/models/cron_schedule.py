"""
Toreca Tracker — Cron Schedule Model

One row per cron job. The external cron trigger fires often; the gate in
src/pipeline/cron_gate.py reads this row to decide whether the job is due.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, INTEGER, JSON, TIMESTAMP, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.config import ScheduleType
from src.models.base import Base, utcnow


class CronSchedule(Base):
    __tablename__ = "cron_schedules"

    job_name: Mapped[str] = mapped_column(String, primary_key=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    enabled: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, default=True)
    schedule_type: Mapped[str] = mapped_column(
        String, nullable=False, default=ScheduleType.INTERVAL.value,
        comment="interval | daily | multi_daily",
    )
    interval_minutes: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    run_at_hours: Mapped[list[int] | None] = mapped_column(
        JSON, nullable=True, comment="UTC hours for daily/multi_daily jobs"
    )
    run_at_minute: Mapped[int | None] = mapped_column(INTEGER, nullable=True)

    last_run_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    last_status: Mapped[str | None] = mapped_column(String, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def to_dict(self) -> dict:
        return {
            "job_name": self.job_name,
            "display_name": self.display_name,
            "enabled": self.enabled,
            "schedule_type": self.schedule_type,
            "interval_minutes": self.interval_minutes,
            "run_at_hours": self.run_at_hours,
            "run_at_minute": self.run_at_minute,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_status": self.last_status,
            "last_error": self.last_error,
        }

    def __repr__(self) -> str:
        return f"<CronSchedule job_name={self.job_name!r} enabled={self.enabled} type={self.schedule_type!r}>"
