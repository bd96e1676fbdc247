"""
Toreca Tracker — In-Memory TTL Cache

Process-local key -> payload store with eviction-on-read. One instance is
created per cached resource (JustTCG sets, JustTCG cards) and injected into
the handlers that use it, so tests can swap the clock and a distributed
store can replace it later.

No locking: concurrent misses on the same key may each fetch upstream.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A cached payload and the monotonic time (seconds) it was fetched."""
    payload: T
    fetched_at: float


class TTLCache(Generic[T]):
    """
    Mapping of key -> CacheEntry that expires entries after ttl_seconds.

    An entry is fresh while ``now - fetched_at < ttl_seconds``. Expired
    entries are dropped the first time they are read.

    Args:
        ttl_seconds: Lifetime of each entry.
        clock: Returns the current time in seconds. Defaults to time.monotonic.
        name: Label used in log events.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] | None = None,
        name: str = "cache",
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._name = name
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        """Return the payload for key if fresh, else None (evicting stale entries)."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = self._clock() - entry.fetched_at
        if age < self.ttl_seconds:
            logger.debug("cache_hit", cache=self._name, key=key, age_seconds=round(age, 3))
            return entry.payload

        del self._entries[key]
        logger.debug("cache_expired", cache=self._name, key=key, age_seconds=round(age, 3))
        return None

    def set(self, key: str, payload: T) -> None:
        self._entries[key] = CacheEntry(payload=payload, fetched_at=self._clock())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


def cached_response(payload: dict[str, Any], cached: bool) -> dict[str, Any]:
    """Annotate a payload with whether it was served from the cache."""
    return {**payload, "cached": cached}
