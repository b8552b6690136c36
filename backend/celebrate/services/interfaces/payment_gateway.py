"""
Payment gateway interface.
Lets the payment service run against Stripe or an offline stand-in.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class PaymentGatewayError(Exception):
    """The provider refused or failed to create a payment."""


class WebhookSignatureError(Exception):
    """A webhook payload could not be authenticated or parsed."""


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


class PaymentGateway(ABC):
    """
    Implementations:
    - StripeGateway: real Stripe API calls and signature checks
    - MockGateway: fixed intent ids, trusts webhook payloads (tests, local dev)
    """

    @abstractmethod
    async def create_payment_intent(self, amount: int, currency: str, metadata: dict) -> PaymentIntent:
        """
        Create a payment intent.

        Args:
            amount: Amount in the currency's minor unit (pence for GBP)
            currency: ISO currency code, lower case
            metadata: Echoed back on webhook events (carries the booking id)
        """
        pass

    @abstractmethod
    def parse_webhook_event(self, payload: bytes, signature: str, secret: str) -> dict:
        """
        Verify a webhook delivery and return the event as a dict.

        Args:
            payload: Raw request body, exactly as received
            signature: Value of the Stripe-Signature header
            secret: Endpoint signing secret

        Raises:
            WebhookSignatureError: signature mismatch or malformed payload
        """
        pass
