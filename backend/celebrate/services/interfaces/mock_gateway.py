"""
Offline payment gateway - no network, no signature checks.
"""

import json

from celebrate.services.interfaces.payment_gateway import PaymentGateway, PaymentIntent, WebhookSignatureError


class MockGateway(PaymentGateway):
    """
    Returns a fixed test intent and accepts any webhook signature.

    Use when:
    - Running the test suite
    - Local development without Stripe keys (USE_MOCK_STRIPE=true)
    """

    intent_id = "pi_test_123"
    client_secret = "cs_test_123"

    async def create_payment_intent(self, amount: int, currency: str, metadata: dict) -> PaymentIntent:
        return PaymentIntent(id=self.intent_id, client_secret=self.client_secret)

    def parse_webhook_event(self, payload: bytes, signature: str, secret: str) -> dict:
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}") from e
        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid payload: expected an object")
        return event
