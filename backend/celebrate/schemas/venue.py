"""
Pydantic schemas for venue listing, search and moderation.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

VenueSort = Literal["name", "-name", "capacity", "-capacity", "price", "-price", "created", "-created"]


class VenueCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., ge=0)
    base_price: float = Field(..., ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    images: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    event_types: list[str] = Field(default_factory=list)


class VenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    images: Optional[list[str]] = None
    amenities: Optional[list[str]] = None
    event_types: Optional[list[str]] = None


class VenueSearchParams(BaseModel):
    city: Optional[str] = Field(None, min_length=1)
    q: Optional[str] = Field(None, min_length=1)
    min_capacity: Optional[int] = Field(None, ge=0)
    max_capacity: Optional[int] = Field(None, ge=0)
    amenity: Optional[str] = Field(None, min_length=1)
    event_type: Optional[str] = Field(None, min_length=1)
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    sort: VenueSort = "name"


class VenueResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    description: str
    city: str
    country: str
    capacity: int
    base_price: float
    rating: float
    images: list[str]
    amenities: list[str]
    event_types: list[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class VenueDetailResponse(VenueResponse):
    availability: list[date]
    booked_dates: list[date]


class VenueListResponse(BaseModel):
    items: list[VenueResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    cached: bool = False


class VenueItemsResponse(BaseModel):
    items: list[VenueResponse]


class VenueDeleteResponse(BaseModel):
    id: str
    deleted: bool = True
