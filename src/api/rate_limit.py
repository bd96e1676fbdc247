"""Fixed-interval in-memory rate limiter keyed by client IP."""

from __future__ import annotations

import math
import time
from typing import Callable

import structlog
from fastapi import Request

from src.errors import RateLimitError

logger = structlog.get_logger(__name__)


class IntervalRateLimiter:
    """
    Accepts at most one request per key per interval.

    A request is rejected when it arrives less than ``interval_seconds``
    after the last *accepted* request for the same key. Rejected requests do
    not push the window forward.

    State is a plain dict: process-local, reset on restart, not shared
    across instances.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] | None = None,
    ):
        self.interval_seconds = interval_seconds
        self._clock = clock or time.monotonic
        self._last_accepted: dict[str, float] = {}

    def check(self, key: str) -> tuple[bool, int | None]:
        """
        Check if a request for key is allowed, recording it when it is.

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        now = self._clock()
        last = self._last_accepted.get(key)
        if last is not None:
            elapsed = now - last
            if elapsed < self.interval_seconds:
                return False, max(1, math.ceil(self.interval_seconds - elapsed))

        self._last_accepted[key] = now
        return True, None

    def enforce(self, key: str) -> None:
        """Raise RateLimitError if key is still inside its interval."""
        allowed, retry_after = self.check(key)
        if not allowed:
            logger.warning("rate_limit_rejected", client_key=key, retry_after=retry_after)
            raise RateLimitError(
                "Too many requests. Please wait a moment and try again.",
                retry_after=retry_after,
            )

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._last_accepted.clear()
        else:
            self._last_accepted.pop(key, None)


def get_client_ip(request: Request) -> str:
    """Client key from X-Forwarded-For, trusting the first hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return "unknown"
