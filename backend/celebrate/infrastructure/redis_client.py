"""
Shared async Redis connection for the venue cache and the rate limiter.

Redis is advisory only: when it is disabled or unreachable callers get None
and carry on without caching or rate limiting.
"""

import time
from typing import Optional

import redis.asyncio as redis

from celebrate.core.config import get_settings
from celebrate.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None
# monotonic time before which no reconnect is attempted
_retry_after: float = 0.0


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client, _retry_after
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        if time.monotonic() < _retry_after:
            return None
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e), retry_in=settings.REDIS_RETRY_BACKOFF)
            _retry_after = time.monotonic() + settings.REDIS_RETRY_BACKOFF
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
