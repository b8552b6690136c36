"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from celebrate.api.routes import auth, venues, bookings, payments, admin

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(venues.router)
api_router.include_router(bookings.router)
api_router.include_router(payments.router)
api_router.include_router(admin.router)


@api_router.get("/health", tags=["Health"])
async def api_health():
    return {"ok": True}
