"""
Booking endpoints: reserve a day, list, cancel and decline.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.db.session import get_db
from celebrate.core.security import CurrentUser, require_roles
from celebrate.schemas.booking import BookingCreate, BookingListResponse, BookingResponse
from celebrate.services.booking_service import (
    cancel_booking,
    create_booking,
    decline_booking,
    get_user_bookings,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

booker = require_roles("user", "admin")


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    user: CurrentUser = Depends(booker),
    db: AsyncSession = Depends(get_db),
):
    """
    Request a venue for one day.

    The booking starts as `pending` and holds the day until payment fails,
    the owner declines it or the user cancels it.
    """
    booking = await create_booking(db, user, booking_data)
    return booking


@router.get("/me", response_model=BookingListResponse)
async def list_my_bookings(
    user: CurrentUser = Depends(booker),
    db: AsyncSession = Depends(get_db),
):
    bookings = await get_user_bookings(db, user.id)
    return BookingListResponse(items=[BookingResponse.model_validate(b) for b in bookings])


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: str,
    user: CurrentUser = Depends(booker),
    db: AsyncSession = Depends(get_db),
):
    """Cancel your own pending or confirmed booking; the day becomes free again."""
    booking = await cancel_booking(db, booking_id, user)
    return booking


@router.post("/{booking_id}/decline", response_model=BookingResponse)
async def decline_booking_endpoint(
    booking_id: str,
    user: CurrentUser = Depends(require_roles("owner", "admin")),
    db: AsyncSession = Depends(get_db),
):
    """Venue owner turns down a pending booking."""
    booking = await decline_booking(db, booking_id, user)
    return booking
