"""
Booking model: a user's reservation of a venue for one calendar day.

Key design decisions:
- `date` is a DATE column, so "same day" is plain equality
- Partial unique index on (venue_id, date) for active rows (pending/confirmed).
  The service checks first for a friendly error; the index is what stops two
  concurrent requests from both booking the day
- Status history is kept on the row: failed/declined/cancelled free the day
"""

from sqlalchemy import Column, Date, Float, ForeignKey, Index, Integer, String, CheckConstraint, text
from sqlalchemy.orm import relationship

from celebrate.db.base import Base, TimestampMixin, new_id

BOOKING_STATUSES = ("pending", "confirmed", "failed", "declined", "cancelled")
ACTIVE_STATUSES = ("pending", "confirmed")

_ACTIVE_PREDICATE = text("status IN ('pending', 'confirmed')")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=lambda: new_id("b"))
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    venue_id = Column(String(32), ForeignKey("venues.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    total_price = Column(Float, nullable=False)
    payment_intent_id = Column(String(255), nullable=True, index=True)

    user = relationship("User", back_populates="bookings", lazy="raise")
    venue = relationship("Venue", back_populates="bookings", lazy="raise")

    __table_args__ = (
        CheckConstraint("guests > 0", name="check_booking_guests_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'failed', 'declined', 'cancelled')",
            name="check_booking_status",
        ),
        Index(
            "uq_bookings_venue_day_active",
            "venue_id",
            "date",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, venue={self.venue_id}, date={self.date}, status={self.status})>"
