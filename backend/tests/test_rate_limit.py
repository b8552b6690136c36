"""
Tests for the Redis-backed fixed-window rate limiter.
"""

import pytest
import redis.asyncio as redis
from httpx import AsyncClient

from celebrate.core.config import get_settings

LOGIN = {"email": "nobody@example.com", "password": "wrongpassword"}


@pytest.fixture
def tight_auth_limit(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "AUTH_RATE_LIMIT", 2)
    monkeypatch.setattr(settings, "AUTH_RATE_WINDOW", 600)
    return settings


@pytest.mark.asyncio
async def test_auth_limit_returns_429(client: AsyncClient, fake_redis, tight_auth_limit):
    for _ in range(2):
        response = await client.post("/api/v1/auth/login", json=LOGIN)
        assert response.status_code == 401

    response = await client.post("/api/v1/auth/login", json=LOGIN)
    assert response.status_code == 429
    assert response.json() == {"error": "Too many requests"}
    assert response.headers["Retry-After"] == "600"

    counters = [key for key in fake_redis.store if key.startswith("ratelimit:auth:")]
    assert len(counters) == 1
    assert fake_redis.expiries[counters[0]] == 600


@pytest.mark.asyncio
async def test_forwarded_for_ignored_by_default(client: AsyncClient, fake_redis, tight_auth_limit):
    """Rotating X-Forwarded-For values must not buy fresh counters."""
    statuses = []
    for i in range(3):
        response = await client.post(
            "/api/v1/auth/login",
            json=LOGIN,
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        )
        statuses.append(response.status_code)
    assert statuses == [401, 401, 429]


@pytest.mark.asyncio
async def test_forwarded_for_honoured_behind_trusted_proxy(
    client: AsyncClient, fake_redis, tight_auth_limit, monkeypatch,
):
    monkeypatch.setattr(tight_auth_limit, "TRUST_PROXY_HEADERS", True)
    for i in range(3):
        response = await client.post(
            "/api/v1/auth/login",
            json=LOGIN,
            headers={"X-Forwarded-For": f"203.0.113.{i}, 10.0.0.1"},
        )
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_scopes_are_counted_separately(client: AsyncClient, fake_redis, tight_auth_limit):
    for _ in range(3):
        await client.post("/api/v1/auth/login", json=LOGIN)

    response = await client.post("/api/v1/payments/confirm", json={"booking_id": "b_missing"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_redis_errors_fail_open(client: AsyncClient, fake_redis, tight_auth_limit, monkeypatch):
    async def broken_incr(key):
        raise redis.ConnectionError("connection reset")

    monkeypatch.setattr(fake_redis, "incr", broken_incr)
    for _ in range(5):
        response = await client.post("/api/v1/auth/login", json=LOGIN)
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_disabled_limiter_never_counts(client: AsyncClient, fake_redis):
    for _ in range(3):
        await client.post("/api/v1/auth/login", json=LOGIN)
    assert fake_redis.store == {}
