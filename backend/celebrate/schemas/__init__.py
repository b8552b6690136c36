from celebrate.schemas.user import UserCreate, UserResponse, UserLogin, Token, MeResponse
from celebrate.schemas.venue import (
    VenueCreate, VenueUpdate, VenueSearchParams, VenueResponse, VenueDetailResponse, VenueListResponse,
)
from celebrate.schemas.booking import BookingCreate, BookingResponse, BookingListResponse
from celebrate.schemas.payment import PaymentIntentRequest, PaymentIntentResponse, WebhookAck

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "MeResponse",
    "VenueCreate", "VenueUpdate", "VenueSearchParams", "VenueResponse", "VenueDetailResponse",
    "VenueListResponse",
    "BookingCreate", "BookingResponse", "BookingListResponse",
    "PaymentIntentRequest", "PaymentIntentResponse", "WebhookAck",
]
