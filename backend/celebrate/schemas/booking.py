"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class BookingCreate(BaseModel):
    venue_id: str = Field(..., min_length=1)
    date: date
    guests: int = Field(..., ge=1)

    @field_validator("date", mode="before")
    @classmethod
    def _day_of(cls, value):
        # Full timestamps book the UTC calendar day they fall on
        if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
            try:
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return value
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.date()
        return value


class BookingResponse(BaseModel):
    id: str
    user_id: str
    venue_id: str
    date: date
    guests: int
    status: str
    total_price: float
    payment_intent_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    items: list[BookingResponse]
