"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .payment_gateway import PaymentGateway, PaymentGatewayError, PaymentIntent, WebhookSignatureError
from .mock_gateway import MockGateway

__all__ = ['PaymentGateway', 'PaymentGatewayError', 'PaymentIntent', 'WebhookSignatureError', 'MockGateway']
