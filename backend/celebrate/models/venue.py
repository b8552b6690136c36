"""
Venue model: a bookable location listed by an owner.

- amenities / event_types / images are string lists stored as JSON text
- is_deleted soft-deletes the listing; rows are never removed
- status is the moderation state: pending -> approved / suspended
"""

from sqlalchemy import (
    Column, String, Integer, Float, Text, Boolean, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from celebrate.db.base import Base, TimestampMixin, new_id
from celebrate.db.types import JSONList

VENUE_STATUSES = ("pending", "approved", "suspended")


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(String(32), primary_key=True, default=lambda: new_id("v"))
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    base_price = Column(Float, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0)
    amenities = Column(JSONList, nullable=False, default=list)
    event_types = Column(JSONList, nullable=False, default=list)
    images = Column(JSONList, nullable=False, default=list)
    is_deleted = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")

    owner = relationship("User", back_populates="venues", lazy="raise")
    bookings = relationship("Booking", back_populates="venue", lazy="raise")

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_venue_capacity_non_negative"),
        CheckConstraint("base_price >= 0", name="check_venue_price_non_negative"),
        CheckConstraint("status IN ('pending', 'approved', 'suspended')", name="check_venue_status"),
        # Public search always filters on these two
        Index("ix_venues_listing", "is_deleted", "status"),
        Index("ix_venues_city", "city"),
    )

    @property
    def is_listed(self) -> bool:
        """Visible in public search and bookable."""
        return not self.is_deleted and self.status != "suspended"

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, status={self.status}, deleted={self.is_deleted})>"
