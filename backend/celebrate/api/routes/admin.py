"""
Admin moderation endpoints.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.db.session import get_db
from celebrate.core.security import CurrentUser, require_roles
from celebrate.schemas.venue import VenueItemsResponse, VenueResponse
from celebrate.services import venue_service
from celebrate.services.cache_service import invalidate_venue_cache

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_roles("admin")


@router.get("/venues", response_model=VenueItemsResponse)
async def list_venues(
    status: Optional[Literal["pending", "approved", "suspended"]] = Query(None),
    user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Every non-deleted venue, newest first, optionally filtered by moderation status."""
    venues = await venue_service.list_venues_for_moderation(db, status)
    return VenueItemsResponse(items=[VenueResponse.model_validate(v) for v in venues])


@router.post("/venues/{venue_id}/approve", response_model=VenueResponse)
async def approve_venue(
    venue_id: str,
    user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    venue = await venue_service.set_moderation_status(db, venue_id, "approved", user)
    await invalidate_venue_cache()
    return venue


@router.post("/venues/{venue_id}/suspend", response_model=VenueResponse)
async def suspend_venue(
    venue_id: str,
    user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Suspended venues drop out of search and cannot take new bookings."""
    venue = await venue_service.set_moderation_status(db, venue_id, "suspended", user)
    await invalidate_venue_cache()
    return venue
