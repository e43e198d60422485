"""Counter store backing the per-IP request throttle."""

from __future__ import annotations

import logging
import threading
import time
from functools import lru_cache
from typing import Callable, Protocol

from redis import Redis
from redis.exceptions import RedisError

from app.config import get_settings

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Protocol describing the counter operations the throttle relies on."""

    def get(self, key: str) -> int:
        """Return the current count for ``key`` or ``0`` when absent or expired."""

    def increment(self, key: str, ttl_seconds: int) -> int:
        """Increment ``key`` and return the new count, starting a window of ``ttl_seconds``."""

    def expire(self, key: str) -> None:
        """Drop the counter for ``key``, ignoring missing values."""


class InMemoryRateLimitStore:
    """Fixed-window counters kept in process memory; lost on restart."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._store: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep = clock() + sweep_interval_seconds

    def bucket_count(self) -> int:
        with self._lock:
            return len(self._store)

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        expired = [key for key, (_, expires_at) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]
        self._next_sweep = now + self._sweep_interval

    def _live_entry(self, key: str) -> tuple[int, float] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            self._store.pop(key, None)
            return None
        return entry

    def get(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else 0

    def increment(self, key: str, ttl_seconds: int) -> int:
        with self._lock:
            self._sweep(self._clock())
            entry = self._live_entry(key)
            if entry is None:
                entry = (0, self._clock() + ttl_seconds)
            count = entry[0] + 1
            self._store[key] = (count, entry[1])
            return count

    def expire(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)


class RedisRateLimitStore:
    """Thin Redis wrapper adhering to :class:`RateLimitStore`."""

    def __init__(self, url: str, prefix: str = "ratelimit:") -> None:
        self._client = Redis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def get(self, key: str) -> int:
        value = self._client.get(self._prefix + key)
        return int(value) if value is not None else 0

    def increment(self, key: str, ttl_seconds: int) -> int:
        name = self._prefix + key
        count = int(self._client.incr(name))
        if count == 1:
            self._client.expire(name, ttl_seconds)
        return count

    def expire(self, key: str) -> None:
        self._client.delete(self._prefix + key)


@lru_cache(maxsize=1)
def get_rate_limit_store() -> RateLimitStore:
    """Return the configured store, using Redis when a URL is configured."""

    settings = get_settings()
    if settings.rate_limit_redis_url:
        try:
            store = RedisRateLimitStore(settings.rate_limit_redis_url)
            store.get("__ping__")
            return store
        except RedisError:
            logger.warning("Rate limit Redis unavailable, falling back to in-process buckets")
    return InMemoryRateLimitStore()


def hit(store: RateLimitStore, key: str, *, limit: int, window_seconds: int) -> bool:
    """Count one request for ``key``; return ``False`` once ``limit`` is exceeded."""

    return store.increment(key, window_seconds) <= limit
