"""Tests for the rate limit store and middleware."""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

import app.main as main_module
from app.config import get_settings
from app.services.rate_limit import InMemoryRateLimitStore, hit


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_in_memory_store_counts_within_window():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock)

    assert [store.increment("1.2.3.4", 60) for _ in range(3)] == [1, 2, 3]
    assert store.get("1.2.3.4") == 3
    assert store.get("5.6.7.8") == 0


def test_in_memory_store_resets_after_window():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock)
    store.increment("ip", 60)
    store.increment("ip", 60)

    clock.now += 61
    assert store.get("ip") == 0
    assert store.increment("ip", 60) == 1


def test_expire_drops_counter():
    store = InMemoryRateLimitStore(clock=FakeClock())
    store.increment("ip", 60)
    store.expire("ip")
    store.expire("missing")
    assert store.get("ip") == 0


def test_hit_allows_up_to_limit():
    store = InMemoryRateLimitStore(clock=FakeClock())
    results = [hit(store, "ip", limit=2, window_seconds=60) for _ in range(3)]
    assert results == [True, True, False]


def test_middleware_limits_by_forwarded_ip(client: TestClient, monkeypatch):
    monkeypatch.setattr(get_settings(), "rate_limit_max_requests", 2)

    first_ip = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
    responses = [client.get("/api/", headers=first_ip) for _ in range(3)]

    assert [response.status_code for response in responses] == [200, 200, 429]
    assert responses[-1].json() == {"detail": "Rate limit exceeded"}

    other_ip = client.get("/api/", headers={"CF-Connecting-IP": "198.51.100.2"})
    assert other_ip.status_code == 200


def test_health_and_metrics_are_exempt(client: TestClient, monkeypatch):
    monkeypatch.setattr(get_settings(), "rate_limit_max_requests", 1)

    for _ in range(3):
        assert client.get("/health").status_code == 200
        assert client.get("/metrics").status_code == 200


def test_expired_buckets_are_swept_on_increment():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock, sweep_interval_seconds=30)
    for index in range(5):
        store.increment(f"10.0.0.{index}", 10)
    assert store.bucket_count() == 5

    clock.now += 31
    store.increment("10.0.1.1", 10)

    assert store.bucket_count() == 1
    assert store.get("10.0.1.1") == 1


def test_sweep_keeps_live_buckets():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock, sweep_interval_seconds=30)
    store.increment("short", 10)
    store.increment("long", 600)

    clock.now += 31
    store.increment("new", 10)

    assert store.bucket_count() == 2
    assert store.get("long") == 1


class UnreachableStore:
    def get(self, key: str) -> int:
        raise RedisConnectionError("connection refused")

    def increment(self, key: str, ttl_seconds: int) -> int:
        raise RedisConnectionError("connection refused")

    def expire(self, key: str) -> None:
        raise RedisConnectionError("connection refused")


def test_middleware_lets_requests_through_when_store_fails(
    client: TestClient, monkeypatch, caplog
):
    monkeypatch.setattr(main_module, "get_rate_limit_store", lambda: UnreachableStore())

    with caplog.at_level(logging.WARNING, logger="app.main"):
        response = client.get("/api/")

    assert response.status_code == 200
    assert "Rate limit store unavailable" in caplog.text
