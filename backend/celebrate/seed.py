"""
Demo data for local development.

    python -m celebrate.seed

Safe to run repeatedly: users are matched by email, venues by owner and
name, and the demo booking by venue and day.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.core.logging import setup_logging, get_logger
from celebrate.core.security import hash_password
from celebrate.db.session import SessionLocal, engine
from celebrate.models import Booking, User, Venue

logger = get_logger(__name__)

DEMO_PASSWORD = "celebrate123"

USERS = [
    {"email": "alice@example.com", "name": "Alice", "role": "user"},
    {"email": "owner@example.com", "name": "Olivia Owner", "role": "owner"},
    {"email": "admin@example.com", "name": "Adam Admin", "role": "admin"},
]

VENUES = [
    {
        "name": "Grand Hall London",
        "description": "Victorian ballroom with a sprung dance floor and a gallery for the band.",
        "city": "London",
        "country": "UK",
        "capacity": 250,
        "base_price": 4500.0,
        "rating": 4.7,
        "amenities": ["parking", "catering", "stage", "wifi"],
        "event_types": ["wedding", "conference", "gala"],
        "images": ["https://images.example.com/grand-hall-1.jpg"],
        "status": "approved",
    },
    {
        "name": "Dubai Marina Terrace",
        "description": "Open-air rooftop terrace overlooking the marina.",
        "city": "Dubai",
        "country": "UAE",
        "capacity": 120,
        "base_price": 3200.0,
        "rating": 4.5,
        "amenities": ["bar", "dj booth", "wifi"],
        "event_types": ["birthday", "wedding", "corporate"],
        "images": ["https://images.example.com/marina-terrace-1.jpg"],
        "status": "approved",
    },
]


async def _upsert_user(db: AsyncSession, data: dict) -> User:
    result = await db.execute(select(User).where(User.email == data["email"]))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(hashed_password=hash_password(DEMO_PASSWORD), **data)
        db.add(user)
        logger.info("seed_user_created", email=data["email"], role=data["role"])
    else:
        user.name = data["name"]
        user.role = data["role"]
        user.is_active = True
    await db.flush()
    return user


async def _upsert_venue(db: AsyncSession, owner: User, data: dict) -> Venue:
    result = await db.execute(
        select(Venue).where(Venue.owner_id == owner.id, Venue.name == data["name"])
    )
    venue = result.scalar_one_or_none()
    if venue is None:
        venue = Venue(owner_id=owner.id, **data)
        db.add(venue)
        logger.info("seed_venue_created", name=data["name"])
    else:
        for field, value in data.items():
            setattr(venue, field, value)
        venue.is_deleted = False
    await db.flush()
    return venue


async def _ensure_booking(db: AsyncSession, user: User, venue: Venue) -> Booking:
    day = datetime.now(timezone.utc).date() + timedelta(days=30)
    result = await db.execute(
        select(Booking).where(Booking.venue_id == venue.id, Booking.date == day)
    )
    booking = result.scalars().first()
    if booking is None:
        booking = Booking(
            user_id=user.id,
            venue_id=venue.id,
            date=day,
            guests=80,
            status="pending",
            total_price=venue.base_price,
        )
        db.add(booking)
        await db.flush()
        logger.info("seed_booking_created", venue_id=venue.id, date=str(day))
    return booking


async def seed() -> None:
    async with SessionLocal() as db:
        users = {data["role"]: await _upsert_user(db, data) for data in USERS}
        venues = [await _upsert_venue(db, users["owner"], data) for data in VENUES]
        await _ensure_booking(db, users["user"], venues[0])
        await db.commit()

    logger.info("seed_complete", users=len(USERS), venues=len(VENUES))


async def main() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
