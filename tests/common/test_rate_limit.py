from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.hostel_food_review.hostel_food_review.common.rate_limit import (
    InMemoryRateLimiter,
    RedisRateLimiter,
    get_client_ip,
)


class Clock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakePipeline:
    def __init__(self, client):
        self._client = client
        self._key = None

    def incr(self, key):
        self._key = key

    def pttl(self, key):
        pass

    def execute(self):
        if self._client.down:
            raise RedisConnectionError("connection refused")
        self._client.counts[self._key] = self._client.counts.get(self._key, 0) + 1
        return self._client.counts[self._key], self._client.ttls.get(self._key, -1)


class FakeRedis:
    def __init__(self, *, down: bool = False):
        self.down = down
        self.counts: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    def pipeline(self):
        return FakePipeline(self)

    def pexpire(self, key, ms):
        self.ttls[key] = ms


def test_fixed_window_blocks_then_resets():
    clock = Clock()
    limiter = InMemoryRateLimiter(clock=clock)

    results = [limiter.hit("login:1.2.3.4", 3, 60) for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after(clock.now) == 60

    clock.now += 61
    assert limiter.hit("login:1.2.3.4", 3, 60).allowed


def test_keys_are_independent():
    limiter = InMemoryRateLimiter(clock=Clock())
    assert limiter.hit("a", 1, 60).allowed
    assert not limiter.hit("a", 1, 60).allowed
    assert limiter.hit("b", 1, 60).allowed


def test_store_is_bounded():
    clock = Clock()
    limiter = InMemoryRateLimiter(max_keys=10, clock=clock)
    for n in range(10):
        limiter.hit(f"k{n}", 5, 60)

    limiter.hit("k10", 5, 60)

    assert len(limiter) == 10
    # the oldest live key was dropped to make room
    assert limiter.hit("k0", 1, 60).allowed


def test_expired_keys_are_evicted_first():
    clock = Clock()
    limiter = InMemoryRateLimiter(max_keys=10, clock=clock)
    limiter.hit("old", 5, 1)
    for n in range(9):
        limiter.hit(f"k{n}", 5, 600)
    clock.now += 5

    limiter.hit("new", 5, 60)

    assert len(limiter) == 10
    # only the expired key made room, live keys keep their counts
    assert limiter.hit("k0", 2, 600).remaining == 0


def test_redis_limiter_counts_and_sets_expiry():
    client = FakeRedis()
    limiter = RedisRateLimiter(client, prefix="test")

    first = limiter.hit("export:7", 2, 60)
    assert first.allowed and first.remaining == 1
    assert client.ttls["test:export:7"] == 60_000

    limiter.hit("export:7", 2, 60)
    assert not limiter.hit("export:7", 2, 60).allowed


def test_redis_outage_falls_back_to_memory():
    fallback = InMemoryRateLimiter(clock=Clock())
    limiter = RedisRateLimiter(FakeRedis(down=True), fallback=fallback)

    assert limiter.hit("login:x", 1, 60).allowed
    assert not limiter.hit("login:x", 1, 60).allowed
    assert len(fallback) == 1


def test_empty_fallback_limiter_is_kept():
    fallback = InMemoryRateLimiter()
    limiter = RedisRateLimiter(FakeRedis(down=True), fallback=fallback)

    limiter.hit("register:x", 5, 60)
    assert len(fallback) == 1


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"CF-Connecting-IP": " 203.0.113.7 ", "X-Forwarded-For": "10.0.0.1"}, "203.0.113.7"),
        ({"X-Forwarded-For": "198.51.100.2, 10.0.0.1"}, "198.51.100.2"),
        ({"X-Real-IP": "192.0.2.4"}, "192.0.2.4"),
        ({}, "unknown"),
    ],
)
def test_client_ip_resolution(headers, expected):
    assert get_client_ip(headers) == expected
