"""
Celebrate Venues API - Main Application Entry Point

Venue marketplace backend:
- Venue search with Redis caching and owner listing management
- One-booking-per-day reservations guarded by a partial unique index
- Stripe payment intents and idempotent webhook processing
- Admin moderation of listings
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from celebrate.core.config import get_settings
from celebrate.core.errors import register_exception_handlers
from celebrate.core.logging import setup_logging, get_logger
from celebrate.core.metrics import metrics_endpoint
from celebrate.api.router import api_router
from celebrate.api.middleware import RequestLoggingMiddleware
from celebrate.infrastructure.redis_client import get_redis, close_redis
from celebrate.services.cache_service import get_cache_stats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache and rate limits")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("stripe_webhook_secret_missing", message="Webhook deliveries will be rejected")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Venue booking marketplace: search, bookings, payments and moderation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS: empty ALLOWED_ORIGINS accepts any origin
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "health": "/api/v1/health",
        "docs": "/docs",
        "endpoints": [
            "/api/v1/venues",
            "/api/v1/bookings",
            "/api/v1/payments/intent",
            "/api/v1/payments/confirm",
            "/api/v1/admin/venues",
        ],
    }
