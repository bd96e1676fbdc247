"""
SQLAlchemy 2.0 async DeclarativeBase for Toreca Tracker.

All models inherit from this Base.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Toreca Tracker database models."""
    pass


def new_id() -> str:
    """Client-side UUID primary key, as text (portable across Postgres and SQLite)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from drivers that drop tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
