"""
Redis caching service for public venue search.

CACHING STRATEGY
================

What we cache:
  - Venue search responses (paginated, JSON-serialized)
  - Key: "venues:search:" + the normalized query string, so the same filters
    in a different order share an entry

Invalidation:
  - Any venue write (create, update, soft delete, approve, suspend) drops
    every search key; a listing can move in or out of any page
  - TTL-based expiry as safety net

Venue detail is never cached: it carries booked dates, which must be current
when a user picks a day.
"""

import json
from typing import Optional
from urllib.parse import urlencode

import redis.asyncio as redis

from celebrate.core.config import get_settings
from celebrate.core.logging import get_logger
from celebrate.core.metrics import record_cache_operation
from celebrate.infrastructure.redis_client import get_redis
from celebrate.schemas.venue import VenueSearchParams

logger = get_logger(__name__)

SEARCH_KEY_PREFIX = "venues:search:"


def make_search_key(params: VenueSearchParams) -> str:
    values = params.model_dump(exclude_none=True)
    for field in ("city", "q"):
        if field in values:
            values[field] = values[field].strip().lower()
    return SEARCH_KEY_PREFIX + urlencode(sorted(values.items()))


async def get_cached_search(params: VenueSearchParams) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = make_search_key(params)
    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def set_cached_search(params: VenueSearchParams, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = make_search_key(params)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_venue_cache() -> None:
    """Drop all cached search pages (SCAN over the key prefix)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=SEARCH_KEY_PREFIX + "*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
