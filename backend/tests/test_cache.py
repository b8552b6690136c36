"""
Tests for the venue search cache, its invalidation and Redis back-off.
"""

import pytest
import redis.asyncio as redis
from httpx import AsyncClient

from celebrate.core.config import get_settings
from celebrate.infrastructure import redis_client
from celebrate.services.cache_service import SEARCH_KEY_PREFIX


def search_keys(fake_redis) -> list:
    return [key for key in fake_redis.store if key.startswith(SEARCH_KEY_PREFIX)]


@pytest.mark.asyncio
async def test_second_search_is_served_from_cache(client: AsyncClient, fake_redis, test_venue):
    first = await client.get("/api/v1/venues", params={"city": "London"})
    assert first.json()["cached"] is False
    assert len(search_keys(fake_redis)) == 1
    assert fake_redis.expiries[search_keys(fake_redis)[0]] == get_settings().REDIS_CACHE_TTL

    second = await client.get("/api/v1/venues", params={"city": "london"})
    data = second.json()
    assert data["cached"] is True
    assert [v["id"] for v in data["items"]] == [test_venue.id]
    assert data["total"] == 1


@pytest.mark.asyncio
async def test_venue_create_invalidates_search_cache(
    client: AsyncClient, fake_redis, test_venue, owner_headers,
):
    await client.get("/api/v1/venues")
    await client.get("/api/v1/venues", params={"page": 2})
    assert len(search_keys(fake_redis)) == 2

    response = await client.post("/api/v1/venues", json={
        "name": "Brand New Barn",
        "city": "London",
        "country": "UK",
        "capacity": 40,
        "base_price": 300,
    }, headers=owner_headers)
    assert response.status_code == 201
    assert search_keys(fake_redis) == []

    fresh = await client.get("/api/v1/venues")
    assert fresh.json()["cached"] is False
    assert fresh.json()["total"] == 2


@pytest.mark.asyncio
async def test_moderation_invalidates_search_cache(client: AsyncClient, fake_redis, test_venue, admin_headers):
    await client.get("/api/v1/venues")
    assert search_keys(fake_redis)

    await client.post(f"/api/v1/admin/venues/{test_venue.id}/suspend", headers=admin_headers)
    assert search_keys(fake_redis) == []
    assert (await client.get("/api/v1/venues")).json()["total"] == 0


@pytest.mark.asyncio
async def test_health_reports_cache_stats(client: AsyncClient, fake_redis):
    response = await client.get("/health")
    assert response.json()["cache"]["status"] == "connected"


class UnreachableRedis:
    async def ping(self):
        raise redis.ConnectionError("timed out")

    async def aclose(self):
        pass


@pytest.mark.asyncio
async def test_unreachable_redis_is_not_retried_every_call(monkeypatch):
    calls = []

    def from_url(url, **kwargs):
        calls.append(url)
        return UnreachableRedis()

    monkeypatch.setattr(get_settings(), "REDIS_ENABLED", True)
    monkeypatch.setattr(redis_client, "_redis_client", None)
    monkeypatch.setattr(redis_client, "_retry_after", 0.0)
    monkeypatch.setattr(redis_client.redis, "from_url", from_url)

    assert await redis_client.get_redis() is None
    assert await redis_client.get_redis() is None
    assert len(calls) == 1

    # Once the back-off has passed, the next call tries again
    monkeypatch.setattr(redis_client, "_retry_after", 0.0)
    assert await redis_client.get_redis() is None
    assert len(calls) == 2
