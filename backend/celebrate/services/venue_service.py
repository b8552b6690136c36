"""
Venue service: public search, owner management and admin moderation.

Visibility rules:
- soft-deleted venues are invisible everywhere (404 on direct access)
- suspended venues are hidden from public search and detail, but still show
  up for their owner and for admins
"""

import json
import math
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import Text, func, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from celebrate.core.logging import get_logger
from celebrate.core.security import CurrentUser
from celebrate.models.booking import ACTIVE_STATUSES, Booking
from celebrate.models.venue import Venue
from celebrate.schemas.venue import VenueCreate, VenueSearchParams, VenueUpdate

logger = get_logger(__name__)

AVAILABILITY_WEEKS = 7

_SORT_COLUMNS = {
    "name": Venue.name,
    "capacity": Venue.capacity,
    "price": Venue.base_price,
    "created": Venue.created_at,
}


def _listed():
    return (Venue.is_deleted.is_(False), Venue.status != "suspended")


def _list_contains(column, value: str):
    # Lists are JSON text; match the quoted element so "AV" does not match "AVX"
    return type_coerce(column, Text).contains(json.dumps(value), autoescape=True)


async def search_venues(db: AsyncSession, params: VenueSearchParams) -> tuple[list[Venue], int]:
    """Filter, sort and paginate listed venues. Returns (page items, total matches)."""
    query = select(Venue).where(*_listed())

    if params.city:
        query = query.where(func.lower(Venue.city) == params.city.strip().lower())
    if params.q:
        query = query.where(func.lower(Venue.name).contains(params.q.strip().lower(), autoescape=True))
    if params.min_capacity is not None:
        query = query.where(Venue.capacity >= params.min_capacity)
    if params.max_capacity is not None:
        query = query.where(Venue.capacity <= params.max_capacity)
    if params.amenity:
        query = query.where(_list_contains(Venue.amenities, params.amenity))
    if params.event_type:
        query = query.where(_list_contains(Venue.event_types, params.event_type))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    column = _SORT_COLUMNS[params.sort.lstrip("-")]
    order = column.desc() if params.sort.startswith("-") else column.asc()
    result = await db.execute(
        query
        .order_by(order, Venue.id.asc())
        .offset((params.page - 1) * params.page_size)
        .limit(params.page_size)
    )
    return list(result.scalars().all()), total


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


async def get_venue(db: AsyncSession, venue_id: str) -> Venue:
    """Any non-deleted venue, whatever its moderation status."""
    venue = await db.get(Venue, venue_id)
    if venue is None or venue.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Venue not found",
        )
    return venue


def weekly_availability(start: date, weeks: int = AVAILABILITY_WEEKS) -> list[date]:
    """Suggested dates: `start` and the same weekday for the following weeks."""
    return [start + timedelta(days=7 * i) for i in range(weeks)]


async def get_booked_dates(db: AsyncSession, venue_id: str) -> list[date]:
    result = await db.execute(
        select(Booking.date)
        .where(Booking.venue_id == venue_id, Booking.status.in_(ACTIVE_STATUSES))
        .order_by(Booking.date.asc())
    )
    return list(result.scalars().all())


def ensure_can_manage(venue: Venue, user: CurrentUser) -> None:
    if not (user.is_admin or venue.owner_id == user.id):
        logger.warning("venue_access_denied", venue_id=venue.id, user_id=user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def create_venue(db: AsyncSession, data: VenueCreate, owner_id: str) -> Venue:
    """New listings start in moderation as `pending`."""
    venue = Venue(
        owner_id=owner_id,
        name=data.name.strip(),
        description=data.description,
        city=data.city.strip(),
        country=data.country.strip(),
        capacity=data.capacity,
        base_price=data.base_price,
        rating=data.rating if data.rating is not None else 0,
        images=data.images,
        amenities=data.amenities,
        event_types=data.event_types,
        status="pending",
        is_deleted=False,
    )
    db.add(venue)
    await db.flush()

    logger.info("venue_created", venue_id=venue.id, owner_id=owner_id, name=venue.name)
    return venue


async def update_venue(db: AsyncSession, venue_id: str, data: VenueUpdate, user: CurrentUser) -> Venue:
    venue = await get_venue(db, venue_id)
    ensure_can_manage(venue, user)

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    for field in ("name", "city", "country"):
        if field in changes:
            changes[field] = changes[field].strip()
    for field, value in changes.items():
        setattr(venue, field, value)
    await db.flush()

    logger.info("venue_updated", venue_id=venue.id, fields=sorted(changes))
    return venue


async def soft_delete_venue(db: AsyncSession, venue_id: str, user: CurrentUser) -> Venue:
    venue = await get_venue(db, venue_id)
    ensure_can_manage(venue, user)

    venue.is_deleted = True
    await db.flush()

    logger.info("venue_deleted", venue_id=venue.id, by=user.id)
    return venue


async def list_owner_venues(db: AsyncSession, owner_id: str) -> list[Venue]:
    result = await db.execute(
        select(Venue)
        .where(Venue.owner_id == owner_id, Venue.is_deleted.is_(False))
        .order_by(Venue.created_at.desc(), Venue.id.asc())
    )
    return list(result.scalars().all())


async def list_venues_for_moderation(db: AsyncSession, status_filter: Optional[str] = None) -> list[Venue]:
    query = select(Venue).where(Venue.is_deleted.is_(False))
    if status_filter:
        query = query.where(Venue.status == status_filter)
    result = await db.execute(query.order_by(Venue.created_at.desc(), Venue.id.asc()))
    return list(result.scalars().all())


async def set_moderation_status(db: AsyncSession, venue_id: str, new_status: str, admin: CurrentUser) -> Venue:
    venue = await get_venue(db, venue_id)
    previous = venue.status
    venue.status = new_status
    await db.flush()

    logger.info("venue_moderated", venue_id=venue.id, previous=previous, status=new_status, admin_id=admin.id)
    return venue
