"""
Webhook idempotency ledger.

One row per payment provider event id. The row is written in the same
transaction as the booking update, so a redelivered event either finds the
row or collides on the primary key.
"""

from sqlalchemy import Column, DateTime, String, func

from celebrate.db.base import Base, utcnow


class ProcessedEvent(Base):
    __tablename__ = "processed_events"

    event_id = Column(String(255), primary_key=True)
    event_type = Column(String(100), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    def __repr__(self) -> str:
        return f"<ProcessedEvent(event_id={self.event_id}, type={self.event_type})>"
