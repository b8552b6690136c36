"""
Fixed-window rate limiting backed by Redis.

Each (scope, client IP, window) gets a counter: INCR on every request, EXPIRE
set when the counter is created. Over the limit -> 429.

On Redis failure the limiter fails open. Rate limiting protects the login
and payment endpoints from abuse; it is not worth an outage.
"""

import time

import redis.asyncio as redis
from fastapi import HTTPException, Request, status

from celebrate.core.config import get_settings
from celebrate.core.logging import get_logger
from celebrate.core.metrics import record_rate_limited
from celebrate.infrastructure.redis_client import get_redis

logger = get_logger(__name__)


def client_ip(request: Request) -> str:
    """Peer address; X-Forwarded-For only counts behind a trusted proxy."""
    if get_settings().TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def hit(scope: str, identity: str, limit: int, window_seconds: int) -> bool:
    """Count one request. Returns False when the caller is over the limit."""
    client = await get_redis()
    if not client:
        return True

    window = int(time.time()) // window_seconds
    key = f"ratelimit:{scope}:{identity}:{window}"
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, window_seconds)
    except redis.RedisError as e:
        logger.warning("rate_limit_unavailable", scope=scope, error=str(e))
        return True
    return count <= limit


class RateLimit:
    """
    Route dependency, e.g. ``Depends(RateLimit("auth"))``.

    Limits are read from settings as ``<SCOPE>_RATE_LIMIT`` and
    ``<SCOPE>_RATE_WINDOW``.
    """

    def __init__(self, scope: str):
        self.scope = scope

    async def __call__(self, request: Request) -> None:
        settings = get_settings()
        if not settings.RATE_LIMIT_ENABLED:
            return

        limit = getattr(settings, f"{self.scope.upper()}_RATE_LIMIT")
        window = getattr(settings, f"{self.scope.upper()}_RATE_WINDOW")
        ip = client_ip(request)
        if not await hit(self.scope, ip, limit, window):
            record_rate_limited(self.scope)
            logger.warning("rate_limited", scope=self.scope, client=ip)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(window)},
            )
