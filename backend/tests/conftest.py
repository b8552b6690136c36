"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh schema on the test database (TEST_DATABASE_URL,
SQLite through aiosqlite unless overridden). Redis is disabled and the
mock payment gateway is active.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_celebrate.db")

from datetime import date, datetime, timedelta, timezone  # noqa: E402
import fnmatch  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from celebrate.main import app  # noqa: E402
from celebrate.db.base import Base  # noqa: E402
from celebrate.db.session import get_db  # noqa: E402
from celebrate.core.security import create_access_token, hash_password  # noqa: E402
from celebrate.models import Booking, User, Venue  # noqa: E402

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_celebrate.db")

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

PASSWORD = "testpassword123"


def future_day(days: int = 14) -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=days)


def token_for(user: User) -> str:
    return create_access_token(data={"sub": user.id, "role": user.role, "name": user.name})


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    user = User(email=email, name=name, role=role, hashed_password=hash_password(PASSWORD))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "alice@example.com", "Alice", "user")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "bob@example.com", "Bob", "user")


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "owner@example.com", "Olivia", "owner")


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "owner2@example.com", "Oscar", "owner")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", "Adam", "admin")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers for a regular booking user."""
    return headers_for(test_user)


@pytest_asyncio.fixture
async def owner_headers(owner: User) -> dict:
    return headers_for(owner)


@pytest_asyncio.fixture
async def admin_headers(admin: User) -> dict:
    return headers_for(admin)


async def make_venue(db: AsyncSession, owner: User, **overrides) -> Venue:
    values = {
        "name": "Grand Hall",
        "description": "Ballroom",
        "city": "London",
        "country": "UK",
        "capacity": 100,
        "base_price": 500.0,
        "rating": 4.5,
        "amenities": ["parking", "wifi"],
        "event_types": ["wedding"],
        "images": [],
        "status": "approved",
    }
    values.update(overrides)
    venue = Venue(owner_id=owner.id, **values)
    db.add(venue)
    await db.commit()
    await db.refresh(venue)
    return venue


@pytest_asyncio.fixture
async def test_venue(db_session: AsyncSession, owner: User) -> Venue:
    """Approved London venue for 100 guests at 500 per day."""
    return await make_venue(db_session, owner)


@pytest_asyncio.fixture
async def test_booking(db_session: AsyncSession, test_user: User, test_venue: Venue) -> Booking:
    """Pending booking by test_user two weeks out."""
    booking = Booking(
        user_id=test_user.id,
        venue_id=test_venue.id,
        date=future_day(),
        guests=50,
        status="pending",
        total_price=test_venue.base_price,
    )
    db_session.add(booking)
    await db_session.commit()
    await db_session.refresh(booking)
    return booking


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client calls the app makes."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.expiries[key] = ttl

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.store.pop(key, None) is not None
        return removed

    async def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    async def scan_iter(self, match="*", count=None):
        for key in [k for k in self.store if fnmatch.fnmatch(k, match)]:
            yield key

    async def info(self, section=None):
        return {"keyspace_hits": 0, "keyspace_misses": 0}

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Route the cache and the rate limiter to an in-memory Redis."""
    client = FakeRedis()

    async def get_fake_redis():
        return client

    monkeypatch.setattr("celebrate.services.cache_service.get_redis", get_fake_redis)
    monkeypatch.setattr("celebrate.services.rate_limit_service.get_redis", get_fake_redis)
    return client
