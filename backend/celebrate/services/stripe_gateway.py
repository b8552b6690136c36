"""
Stripe implementation of the payment gateway.

The Stripe SDK is synchronous; intent creation runs in the threadpool so a
slow Stripe call does not block the event loop.

Webhooks are verified with the endpoint secret against the raw body. The
body must not be re-serialized before verification: Stripe signs the exact
bytes it sent.
"""

import json

import stripe
from starlette.concurrency import run_in_threadpool

from celebrate.core.logging import get_logger
from celebrate.services.interfaces.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentIntent,
    WebhookSignatureError,
)

logger = get_logger(__name__)


class StripeGateway(PaymentGateway):

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def create_payment_intent(self, amount: int, currency: str, metadata: dict) -> PaymentIntent:
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error("stripe_intent_failed", error=str(e), code=getattr(e, "code", None))
            raise PaymentGatewayError(str(e)) from e
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret)

    def parse_webhook_event(self, payload: bytes, signature: str, secret: str) -> dict:
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(body, signature, secret)
            event = json.loads(body)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(str(e)) from e
        except ValueError as e:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            raise WebhookSignatureError(f"Invalid payload: {e}") from e
        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid payload: expected an object")
        return event
