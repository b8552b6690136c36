"""
Booking service: one venue, one day, one active booking.

DOUBLE-BOOKING STRATEGY
=======================

Problem:
  Two users pick the same free day at the same moment. Both check, both see
  nothing booked, both insert. Result: the venue is sold twice.

Solution:
  1. Pre-check for an active booking on (venue, day) so the common case gets
     a clear "Date already booked" without touching constraints
  2. INSERT. The partial unique index uq_bookings_venue_day_active covers
     (venue_id, date) WHERE status IN ('pending', 'confirmed'), so the second
     of two racing inserts fails with IntegrityError
  3. IntegrityError -> rollback -> same 400 as the pre-check

  Only active bookings hold the day. A failed payment, a decline or a
  cancellation frees it for the next customer.

STATUS TRANSITIONS
==================

  pending   -> confirmed | failed | declined | cancelled
  failed    -> confirmed            (a late successful payment still wins,
                                    unless someone else has booked the day)
  confirmed -> cancelled
  declined, cancelled: terminal
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from celebrate.core.logging import get_logger
from celebrate.core.metrics import record_booking_attempt, record_booking_transition
from celebrate.core.security import CurrentUser
from celebrate.models.booking import ACTIVE_STATUSES, Booking
from celebrate.models.venue import Venue
from celebrate.schemas.booking import BookingCreate
from celebrate.services.auth_service import get_account
from celebrate.services.venue_service import ensure_can_manage, get_venue

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "failed", "declined", "cancelled"},
    "failed": {"confirmed"},
    "confirmed": {"cancelled"},
    "declined": set(),
    "cancelled": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def apply_transition(booking: Booking, target: str, **context) -> None:
    """Move a booking to `target`. Caller checks `can_transition` first."""
    previous = booking.status
    booking.status = target
    record_booking_transition(target)
    logger.info(
        "booking_status_changed",
        booking_id=booking.id,
        previous=previous,
        status=target,
        **context,
    )


def _reject(detail: str, **context) -> HTTPException:
    record_booking_attempt("rejected")
    logger.warning("booking_rejected", reason=detail, **context)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


async def day_is_taken(db: AsyncSession, venue_id: str, day, exclude_booking_id: Optional[str] = None) -> bool:
    """True when another active booking holds (venue, day)."""
    query = select(Booking.id).where(
        Booking.venue_id == venue_id,
        Booking.date == day,
        Booking.status.in_(ACTIVE_STATUSES),
    )
    if exclude_booking_id:
        query = query.where(Booking.id != exclude_booking_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def ensure_day_still_free(db: AsyncSession, booking: Booking) -> None:
    """
    A released booking (failed) gave its day back. Before it becomes active
    again, make sure nobody else took the day in the meantime.
    """
    if booking.is_active:
        return
    if await day_is_taken(db, booking.venue_id, booking.date, exclude_booking_id=booking.id):
        logger.warning("booking_day_lost", booking_id=booking.id, venue_id=booking.venue_id, date=str(booking.date))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date already booked")


async def create_booking(db: AsyncSession, principal: CurrentUser, data: BookingCreate) -> Booking:
    """
    Create a pending booking for one day.
    Price is the venue's base (per-day) price at booking time.
    """
    today = datetime.now(timezone.utc).date()
    if data.date < today:
        raise _reject("Date must be today or later", venue_id=data.venue_id, date=str(data.date))

    venue = await db.get(Venue, data.venue_id)
    if venue is None or not venue.is_listed:
        raise _reject("Invalid venue", venue_id=data.venue_id)

    if venue.capacity and data.guests > venue.capacity:
        raise _reject(
            "Guests exceed capacity",
            venue_id=venue.id,
            guests=data.guests,
            capacity=venue.capacity,
        )

    if await day_is_taken(db, venue.id, data.date):
        record_booking_attempt("date_taken")
        logger.warning("booking_date_taken", venue_id=venue.id, date=str(data.date), check="precheck")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date already booked")

    user = await get_account(db, principal)

    booking = Booking(
        user_id=user.id,
        venue_id=venue.id,
        date=data.date,
        guests=data.guests,
        status="pending",
        total_price=venue.base_price,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        record_booking_attempt("date_taken")
        logger.warning("booking_date_taken", venue_id=data.venue_id, date=str(data.date), check="constraint")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date already booked")

    record_booking_attempt("created")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user.id,
        venue_id=venue.id,
        date=str(booking.date),
        guests=booking.guests,
        total_price=booking.total_price,
    )
    return booking


async def get_user_booking(db: AsyncSession, booking_id: str, user_id: str) -> Booking:
    """A booking owned by `user_id`; anyone else's booking is reported as missing."""
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def get_user_bookings(db: AsyncSession, user_id: str) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.date.desc(), Booking.created_at.desc())
    )
    return list(result.scalars().all())


async def cancel_booking(db: AsyncSession, booking_id: str, user: CurrentUser) -> Booking:
    booking = await get_user_booking(db, booking_id, user.id)

    if not can_transition(booking.status, "cancelled"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Booking cannot be cancelled from status '{booking.status}'",
        )

    apply_transition(booking, "cancelled", by=user.id)
    await db.flush()
    return booking


async def decline_booking(db: AsyncSession, booking_id: str, user: CurrentUser) -> Booking:
    """Venue owner (or admin) turns down a pending request."""
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    venue = await db.get(Venue, booking.venue_id)
    ensure_can_manage(venue, user)

    if not can_transition(booking.status, "declined"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Booking cannot be declined from status '{booking.status}'",
        )

    apply_transition(booking, "declined", by=user.id)
    await db.flush()
    return booking


async def get_venue_bookings(db: AsyncSession, venue_id: str, user: CurrentUser) -> list[Booking]:
    venue = await get_venue(db, venue_id)
    ensure_can_manage(venue, user)

    result = await db.execute(
        select(Booking)
        .where(Booking.venue_id == venue.id)
        .order_by(Booking.date.desc(), Booking.created_at.desc())
    )
    return list(result.scalars().all())
