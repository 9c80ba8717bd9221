import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable

import redis.asyncio as redis

from article_review.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheTTL:
    """
    Expiry policy for one cache entry, in seconds.

    An entry dies when it has not been read for *sliding* seconds, or
    *absolute* seconds after it was stored, whichever comes first.
    """

    absolute: float
    sliding: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheTTL":
        return cls(absolute=settings.CACHE_TTL_ABSOLUTE, sliding=settings.CACHE_TTL_SLIDING)


class CacheBackend:
    """
    Common contract for the process-wide cache: get, set-with-ttl, remove.

    Values are JSON-compatible (dicts / lists of dicts); callers rebuild
    their own types from them on a hit.  Each backend keeps hit/miss
    counters for the metrics endpoint.
    """

    def __init__(self, default_ttl: CacheTTL) -> None:
        self.default_ttl = default_ttl
        self._hits: int = 0
        self._misses: int = 0

    async def connect(self) -> None:
        """Acquire external resources.  Called once at application startup."""

    async def disconnect(self) -> None:
        """Release external resources.  Called once at application shutdown."""

    async def get(self, key: str) -> Any | None:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl: CacheTTL | None = None) -> None:
        raise NotImplementedError

    async def remove(self, *keys: str) -> bool:
        """Evict *keys*.  Returns False when the backend could not confirm it."""
        raise NotImplementedError

    def _record(self, hit: bool) -> None:
        if hit:
            self._hits += 1
        else:
            self._misses += 1

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for metrics endpoints."""
        total = self._hits + self._misses
        return {
            "backend": type(self).__name__,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# ---------------------------------------------------------------------------
# In-process cache
# ---------------------------------------------------------------------------

@dataclass
class _Entry:
    value: Any
    deadline: float
    sliding: float
    last_access: float

    def expired(self, now: float) -> bool:
        return now >= self.deadline or now >= self.last_access + self.sliding


class MemoryCache(CacheBackend):
    """
    Process-local cache with absolute and sliding expiry.

    None of the methods await, so on the event loop every get/set/remove
    runs to completion before another request task can touch the dict.
    That makes single-key operations atomic without a lock, and keys never
    contend with each other.  Expired entries are dropped when read, plus
    a sweep every ``_SWEEP_EVERY`` writes.
    """

    _SWEEP_EVERY = 256

    def __init__(self, default_ttl: CacheTTL, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(default_ttl)
        self._entries: dict[str, _Entry] = {}
        self._clock = clock
        self._writes = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None:
            self._record(hit=False)
            return None
        if entry.expired(now):
            self._entries.pop(key, None)
            self._record(hit=False)
            return None
        entry.last_access = now
        self._record(hit=True)
        return entry.value

    async def set(self, key: str, value: Any, ttl: CacheTTL | None = None) -> None:
        ttl = ttl or self.default_ttl
        now = self._clock()
        self._entries[key] = _Entry(
            value=value,
            deadline=now + ttl.absolute,
            sliding=ttl.sliding,
            last_access=now,
        )
        self._writes += 1
        if self._writes % self._SWEEP_EVERY == 0:
            self._sweep(now)

    async def remove(self, *keys: str) -> bool:
        for key in keys:
            self._entries.pop(key, None)
        return True

    def _sweep(self, now: float) -> None:
        stale = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Cache sweep dropped %d expired entr(y/ies)", len(stale))


# ---------------------------------------------------------------------------
# Redis-backed cache
# ---------------------------------------------------------------------------

class RedisCache(CacheBackend):
    """
    Cache backed by Redis, for deployments running several workers.

    Redis only knows a single TTL per key, so the absolute deadline travels
    inside the stored payload and every hit re-arms the key's TTL to
    ``min(sliding, time left before the deadline)``.

    Reads and writes degrade gracefully when Redis is unavailable: a read
    is a miss and a write is skipped.  A failed eviction returns False so
    the caller can report it; the stale entry then lives until its TTL.
    """

    def __init__(self, default_ttl: CacheTTL, url: str, client: redis.Redis | None = None) -> None:
        super().__init__(default_ttl)
        self._url = url
        self._redis: redis.Redis | None = client

    async def connect(self) -> None:
        """Open the connection pool."""
        if self._redis is None:
            self._redis = redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        # Ping to surface mis-configuration early (non-fatal).
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", self._url)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, cache reads will miss: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> Any | None:
        if not self._redis:
            self._record(hit=False)
            return None
        try:
            raw = await self._redis.get(key)
            if raw is None:
                self._record(hit=False)
                return None
            payload = json.loads(raw)
            remaining = payload["deadline"] - time.time()
            if remaining <= 0:
                await self._redis.delete(key)
                self._record(hit=False)
                return None
            await self._redis.pexpire(key, _millis(min(payload["sliding"], remaining)))
            self._record(hit=True)
            return payload["value"]
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._record(hit=False)
            return None

    async def set(self, key: str, value: Any, ttl: CacheTTL | None = None) -> None:
        if not self._redis:
            return
        ttl = ttl or self.default_ttl
        payload = {
            "value": value,
            "deadline": time.time() + ttl.absolute,
            "sliding": ttl.sliding,
        }
        try:
            await self._redis.set(
                key, json.dumps(payload, default=str), px=_millis(min(ttl.absolute, ttl.sliding))
            )
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def remove(self, *keys: str) -> bool:
        if not self._redis or not keys:
            return True
        try:
            await self._redis.delete(*keys)
        except Exception as exc:
            logger.warning("Cache eviction failed for keys=%r: %s", keys, exc)
            return False
        return True


def _millis(seconds: float) -> int:
    return max(1, math.ceil(seconds * 1000))


def build_cache(settings: Settings) -> CacheBackend:
    """Construct the cache backend selected by ``CACHE_BACKEND``."""
    ttl = CacheTTL.from_settings(settings)
    if settings.CACHE_BACKEND == "redis":
        return RedisCache(ttl, settings.REDIS_URL)
    if settings.CACHE_BACKEND != "memory":
        raise ValueError(f"Unknown CACHE_BACKEND {settings.CACHE_BACKEND!r}")
    return MemoryCache(ttl)
