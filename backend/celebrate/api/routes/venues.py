"""
Venue endpoints: public search and detail, owner listing management.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.db.session import get_db
from celebrate.core.logging import get_logger
from celebrate.core.security import CurrentUser, get_optional_user, require_roles
from celebrate.schemas.booking import BookingListResponse, BookingResponse
from celebrate.schemas.venue import (
    VenueCreate,
    VenueDeleteResponse,
    VenueDetailResponse,
    VenueItemsResponse,
    VenueListResponse,
    VenueResponse,
    VenueSearchParams,
    VenueSort,
    VenueUpdate,
)
from celebrate.services import venue_service
from celebrate.services.auth_service import get_account
from celebrate.services.booking_service import get_venue_bookings
from celebrate.services.cache_service import get_cached_search, set_cached_search, invalidate_venue_cache

logger = get_logger(__name__)
router = APIRouter(prefix="/venues", tags=["Venues"])

owner_or_admin = require_roles("owner", "admin")


@router.get("", response_model=VenueListResponse)
async def search_venues(
    city: Optional[str] = Query(None, min_length=1),
    q: Optional[str] = Query(None, min_length=1),
    min_capacity: Optional[int] = Query(None, ge=0),
    max_capacity: Optional[int] = Query(None, ge=0),
    amenity: Optional[str] = Query(None, min_length=1),
    event_type: Optional[str] = Query(None, min_length=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort: VenueSort = Query("name"),
    db: AsyncSession = Depends(get_db),
):
    """
    Search listed venues with filters, sorting and pagination.
    Results are cached in Redis; any venue write clears the cache.
    """
    params = VenueSearchParams(
        city=city, q=q, min_capacity=min_capacity, max_capacity=max_capacity,
        amenity=amenity, event_type=event_type, page=page, page_size=page_size, sort=sort,
    )

    cached = await get_cached_search(params)
    if cached:
        logger.info("venue_search_cache_hit", page=page)
        cached["cached"] = True
        return VenueListResponse(**cached)

    venues, total = await venue_service.search_venues(db, params)
    response_data = {
        "items": [VenueResponse.model_validate(v).model_dump(mode="json") for v in venues],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": venue_service.total_pages(total, page_size),
        "cached": False,
    }
    await set_cached_search(params, response_data)
    return VenueListResponse(**response_data)


@router.get("/mine", response_model=VenueItemsResponse)
async def my_venues(
    user: CurrentUser = Depends(owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """The caller's venues in every moderation state, soft-deleted ones excluded."""
    venues = await venue_service.list_owner_venues(db, user.id)
    return VenueItemsResponse(items=[VenueResponse.model_validate(v) for v in venues])


@router.get("/{venue_id}", response_model=VenueDetailResponse)
async def get_venue(
    venue_id: str,
    viewer: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Venue detail with suggested dates and the days already taken. Not cached.
    A suspended venue is only visible to its owner and to admins.
    """
    venue = await venue_service.get_venue(db, venue_id)
    if venue.status == "suspended" and not (viewer and (viewer.is_admin or viewer.id == venue.owner_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    booked = await venue_service.get_booked_dates(db, venue.id)
    today = datetime.now(timezone.utc).date()
    return VenueDetailResponse(
        **VenueResponse.model_validate(venue).model_dump(),
        availability=venue_service.weekly_availability(today),
        booked_dates=booked,
    )


@router.post("", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue(
    venue_data: VenueCreate,
    user: CurrentUser = Depends(owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """List a new venue. It starts as `pending` until an admin reviews it."""
    owner = await get_account(db, user)
    venue = await venue_service.create_venue(db, venue_data, owner.id)
    await invalidate_venue_cache()
    return venue


@router.put("/{venue_id}", response_model=VenueResponse)
async def update_venue(
    venue_id: str,
    venue_data: VenueUpdate,
    user: CurrentUser = Depends(owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    venue = await venue_service.update_venue(db, venue_id, venue_data, user)
    await invalidate_venue_cache()
    return venue


@router.delete("/{venue_id}", response_model=VenueDeleteResponse)
async def delete_venue(
    venue_id: str,
    user: CurrentUser = Depends(owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the row stays, the listing disappears everywhere."""
    venue = await venue_service.soft_delete_venue(db, venue_id, user)
    await invalidate_venue_cache()
    return VenueDeleteResponse(id=venue.id)


@router.get("/{venue_id}/bookings", response_model=BookingListResponse)
async def venue_bookings(
    venue_id: str,
    user: CurrentUser = Depends(owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    bookings = await get_venue_bookings(db, venue_id, user)
    return BookingListResponse(items=[BookingResponse.model_validate(b) for b in bookings])
