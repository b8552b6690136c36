"""
Payment endpoints: intents, client confirmation and the provider webhook.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.db.session import get_db
from celebrate.core.security import CurrentUser, require_roles
from celebrate.schemas.booking import BookingResponse
from celebrate.schemas.payment import PaymentIntentRequest, PaymentIntentResponse, WebhookAck
from celebrate.services import payment_service
from celebrate.services.gateway_factory import get_payment_gateway
from celebrate.services.interfaces.payment_gateway import PaymentGateway
from celebrate.services.rate_limit_service import RateLimit

router = APIRouter(prefix="/payments", tags=["Payments"])

payer = require_roles("user", "admin")


@router.post(
    "/intent",
    response_model=PaymentIntentResponse,
    dependencies=[Depends(RateLimit("payments"))],
)
async def create_intent(
    body: PaymentIntentRequest,
    user: CurrentUser = Depends(payer),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Start a card payment for the booking's total price."""
    intent = await payment_service.create_payment_intent(db, gateway, body.booking_id, user)
    return PaymentIntentResponse(client_secret=intent.client_secret, payment_intent_id=intent.id)


@router.post(
    "/confirm",
    response_model=BookingResponse,
    dependencies=[Depends(RateLimit("payments"))],
)
async def confirm(
    body: PaymentIntentRequest,
    user: CurrentUser = Depends(payer),
    db: AsyncSession = Depends(get_db),
):
    booking = await payment_service.confirm_payment(db, body.booking_id, user)
    return booking


@router.post(
    "/webhook",
    response_model=WebhookAck,
    response_model_exclude_none=True,
    dependencies=[Depends(RateLimit("webhook"))],
)
async def webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Stripe webhook. Reads the raw body: the signature covers the exact bytes.
    Redelivered events are acknowledged with `duplicate: true` and not reapplied.
    """
    payload = await request.body()
    return await payment_service.handle_webhook(db, gateway, payload, stripe_signature)
