"""Fixed-window rate limiting.

Two backends share the same ``hit(key, limit, window_seconds)`` contract:

- ``InMemoryRateLimiter``: a bounded per-process dict, the default.
- ``RedisRateLimiter``: shared counters for multi-worker deployments
  (``REDIS_URL``); it degrades to an in-memory limiter when Redis errors.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

MAX_STORE_SIZE = 50_000


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float  # epoch seconds

    def retry_after(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


class RateLimiter(Protocol):
    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, *, max_keys: int = MAX_STORE_SIZE, clock: Callable[[], float] = time.time):
        self._store: dict[str, list] = {}
        self._max_keys = int(max_keys)
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def _evict(self, now: float) -> None:
        cutoff = max(1, self._max_keys // 10)
        removed = 0
        for key in list(self._store):
            if removed >= cutoff:
                break
            if now > self._store[key][1]:
                del self._store[key]
                removed += 1
        if len(self._store) >= self._max_keys:
            # Still full: drop the oldest keys (dicts keep insertion order).
            for key in list(self._store)[:cutoff]:
                del self._store[key]

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None or now > entry[1]:
                if entry is None and len(self._store) >= self._max_keys:
                    self._evict(now)
                reset_at = now + window_seconds
                self._store.pop(key, None)
                self._store[key] = [1, reset_at]
                return RateLimitResult(True, limit - 1, reset_at)

            if entry[0] >= limit:
                return RateLimitResult(False, 0, entry[1])

            entry[0] += 1
            return RateLimitResult(True, limit - entry[0], entry[1])


class RedisRateLimiter(RateLimiter):
    def __init__(self, client: Redis, *, prefix: str = "rl", fallback: Optional[RateLimiter] = None):
        self._client = client
        self._prefix = prefix
        self._fallback = fallback if fallback is not None else InMemoryRateLimiter()

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimiter":
        return cls(Redis.from_url(url, decode_responses=True))

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        redis_key = f"{self._prefix}:{key}"
        try:
            pipe = self._client.pipeline()
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            count, ttl_ms = pipe.execute()
            if ttl_ms is None or int(ttl_ms) < 0:
                self._client.pexpire(redis_key, window_seconds * 1000)
                ttl_ms = window_seconds * 1000
        except RedisError as exc:
            logger.warning("Redis rate limit failed for %s, using memory store: %s", key, exc)
            return self._fallback.hit(key, limit, window_seconds)

        reset_at = time.time() + int(ttl_ms) / 1000.0
        count = int(count)
        if count > limit:
            return RateLimitResult(False, 0, reset_at)
        return RateLimitResult(True, limit - count, reset_at)


def build_rate_limiter(redis_url: Optional[str]) -> RateLimiter:
    if redis_url:
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter.from_url(redis_url)
    return InMemoryRateLimiter()


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Best-effort client IP behind Cloudflare / reverse proxies."""
    cf_ip = headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()

    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return (headers.get("X-Real-IP") or "unknown").strip()
