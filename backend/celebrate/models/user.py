"""
User model. The role decides what the account may do: `user` books venues,
`owner` lists them, `admin` moderates.
"""

from sqlalchemy import Column, String, Boolean, CheckConstraint
from sqlalchemy.orm import relationship

from celebrate.db.base import Base, TimestampMixin, new_id


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: new_id("u"))
    role = Column(String(10), nullable=False, default="user")
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    venues = relationship("Venue", back_populates="owner", lazy="raise")
    bookings = relationship("Booking", back_populates="user", lazy="raise")

    __table_args__ = (
        CheckConstraint("role IN ('user', 'owner', 'admin')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
