"""
Pydantic schemas for payment endpoints.
"""

from typing import Optional
from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    booking_id: str = Field(..., min_length=1)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: Optional[bool] = None
