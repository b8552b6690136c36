"""
Payment gateway factory.
Configures which gateway the payment endpoints talk to.
"""

from typing import Optional

from celebrate.core.config import get_settings
from celebrate.services.interfaces.payment_gateway import PaymentGateway
from celebrate.services.interfaces.mock_gateway import MockGateway
from celebrate.services.stripe_gateway import StripeGateway


def build_payment_gateway() -> PaymentGateway:
    """
    MockGateway when USE_MOCK_STRIPE is set or in the test environment,
    StripeGateway otherwise.
    """
    settings = get_settings()
    if settings.USE_MOCK_STRIPE or settings.ENVIRONMENT == "test":
        return MockGateway()
    return StripeGateway(api_key=settings.STRIPE_SECRET_KEY)


_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency returning the gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = build_payment_gateway()
    return _gateway
