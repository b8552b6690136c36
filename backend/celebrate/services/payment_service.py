"""
Payment service: payment intents, manual confirmation and webhook handling.

WEBHOOK IDEMPOTENCY
===================

Stripe delivers events at least once. The same event id can arrive twice
(retries after a timeout) or even concurrently.

  1. Look the event id up in processed_events -> already there: duplicate
  2. Apply the booking transition and flush it on its own. A late success
     for a failed booking can collide with the day's unique index when
     someone else booked the day meanwhile -> rollback, outcome "ignored"
  3. INSERT the processed_events row in the same transaction
  4. Primary key collision (a concurrent delivery won) -> rollback, so this
     request's booking change is discarded, and report a duplicate

The ledger row and the booking change commit together or not at all.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from celebrate.core.config import get_settings
from celebrate.core.logging import get_logger
from celebrate.core.metrics import record_payment_intent, record_webhook, webhook_latency
from celebrate.core.security import CurrentUser
from celebrate.models.booking import Booking
from celebrate.models.processed_event import ProcessedEvent
from celebrate.services.booking_service import (
    apply_transition,
    can_transition,
    day_is_taken,
    ensure_day_still_free,
    get_user_booking,
)
from celebrate.services.interfaces.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentIntent,
    WebhookSignatureError,
)

logger = get_logger(__name__)

# Stripe event type -> booking status it drives
EVENT_TRANSITIONS = {
    "payment_intent.succeeded": "confirmed",
    "payment_intent.payment_failed": "failed",
}

PAYABLE_STATUSES = ("pending", "failed")


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


async def create_payment_intent(
    db: AsyncSession,
    gateway: PaymentGateway,
    booking_id: str,
    user: CurrentUser,
) -> PaymentIntent:
    booking = await get_user_booking(db, booking_id, user.id)
    if booking.status not in PAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking is not awaiting payment",
        )
    await ensure_day_still_free(db, booking)

    settings = get_settings()
    amount = to_minor_units(booking.total_price)
    try:
        intent = await gateway.create_payment_intent(
            amount=amount,
            currency=settings.PAYMENT_CURRENCY,
            metadata={"bookingId": booking.id},
        )
    except PaymentGatewayError as e:
        record_payment_intent("error")
        logger.error("payment_intent_failed", booking_id=booking.id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create payment intent",
        )

    booking.payment_intent_id = intent.id
    await db.flush()

    record_payment_intent("created")
    logger.info("payment_intent_created", booking_id=booking.id, intent_id=intent.id, amount=amount)
    return intent


async def confirm_payment(db: AsyncSession, booking_id: str, user: CurrentUser) -> Booking:
    """Client-side confirmation after a successful card flow. Repeating it is harmless."""
    booking = await get_user_booking(db, booking_id, user.id)
    if booking.status == "confirmed":
        return booking
    if not can_transition(booking.status, "confirmed"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Booking cannot be confirmed from status '{booking.status}'",
        )

    await ensure_day_still_free(db, booking)

    booking_id = booking.id
    apply_transition(booking, "confirmed", source="client_confirm")
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning("booking_day_lost", booking_id=booking_id, check="constraint")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date already booked")
    return booking


async def already_processed(db: AsyncSession, event_id: str) -> bool:
    return await db.get(ProcessedEvent, event_id) is not None


def extract_booking_id(event: dict) -> Optional[str]:
    """The booking id travels in the intent metadata; older clients used snake_case."""
    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        return None
    metadata = obj.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    booking_id = metadata.get("bookingId") or metadata.get("booking_id") or obj.get("bookingId")
    return str(booking_id) if booking_id else None


async def _apply_event(db: AsyncSession, event_id: str, event_type: str, event: dict) -> str:
    """Apply the event's booking transition. Returns the outcome label."""
    target = EVENT_TRANSITIONS.get(event_type)
    if target is None:
        logger.info("webhook_event_ignored", event_id=event_id, event_type=event_type, reason="unhandled_type")
        return "ignored"

    booking_id = extract_booking_id(event)
    booking = await db.get(Booking, booking_id) if booking_id else None
    if booking is None:
        logger.warning("webhook_event_ignored", event_id=event_id, event_type=event_type,
                       booking_id=booking_id, reason="unknown_booking")
        return "ignored"

    if booking.status == target:
        return "processed"
    if not can_transition(booking.status, target):
        logger.warning("webhook_event_ignored", event_id=event_id, event_type=event_type,
                       booking_id=booking.id, status=booking.status, reason="invalid_transition")
        return "ignored"

    if target == "confirmed" and not booking.is_active:
        if await day_is_taken(db, booking.venue_id, booking.date, exclude_booking_id=booking.id):
            logger.warning("webhook_event_ignored", event_id=event_id, event_type=event_type,
                           booking_id=booking.id, reason="date_taken")
            return "ignored"

    booking_id = booking.id
    apply_transition(booking, target, source="webhook", event_id=event_id)
    try:
        await db.flush()
    except IntegrityError:
        # Another booking took the day between the check and the flush
        await db.rollback()
        logger.warning("webhook_event_ignored", event_id=event_id, event_type=event_type,
                       booking_id=booking_id, reason="date_taken", check="constraint")
        return "ignored"
    return "processed"


async def handle_webhook(
    db: AsyncSession,
    gateway: PaymentGateway,
    payload: bytes,
    signature: Optional[str],
) -> dict:
    settings = get_settings()
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("webhook_secret_missing")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        )
    if not signature:
        record_webhook("rejected")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe signature")

    with webhook_latency.time():
        try:
            event = gateway.parse_webhook_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except WebhookSignatureError as e:
            record_webhook("rejected")
            logger.warning("webhook_verification_failed", error=str(e))
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")
        if not event_id:
            record_webhook("rejected")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook Error: missing event id")

        if await already_processed(db, event_id):
            record_webhook("duplicate")
            logger.info("webhook_duplicate", event_id=event_id, event_type=event_type)
            return {"received": True, "duplicate": True}

        outcome = await _apply_event(db, event_id, event_type, event)
        db.add(ProcessedEvent(event_id=event_id, event_type=event_type))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            record_webhook("duplicate")
            logger.info("webhook_duplicate", event_id=event_id, event_type=event_type, check="constraint")
            return {"received": True, "duplicate": True}

    record_webhook(outcome)
    logger.info("webhook_processed", event_id=event_id, event_type=event_type, outcome=outcome)
    return {"received": True}
