"""
Tests for authentication endpoints: registration, login and /me.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from celebrate.core.security import create_access_token


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Successful registration returns user data."""
    response = await client.post("/api/v1/auth/register", json={
        "name": "New User",
        "email": "New@Example.com",
        "password": "securepassword123",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "user"
    assert data["id"].startswith("u")
    assert "hashed_password" not in data  # Never expose password hash


@pytest.mark.asyncio
async def test_register_owner(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={
        "name": "Venue Owner",
        "email": "venues@example.com",
        "password": "securepassword123",
        "role": "owner",
    })
    assert response.status_code == 201
    assert response.json()["role"] == "owner"


@pytest.mark.asyncio
async def test_register_admin_rejected(client: AsyncClient):
    """Admin accounts cannot be self-registered."""
    response = await client.post("/api/v1/auth/register", json={
        "name": "Sneaky",
        "email": "sneaky@example.com",
        "password": "securepassword123",
        "role": "admin",
    })
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user):
    """Duplicate email returns 409."""
    response = await client.post("/api/v1/auth/register", json={
        "name": "Someone",
        "email": "alice@example.com",
        "password": "securepassword123",
    })
    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered"}


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password under 8 chars is a validation error."""
    response = await client.post("/api/v1/auth/register", json={
        "name": "Weak",
        "email": "weak@example.com",
        "password": "short",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert any(d["field"] == "password" for d in body["details"])


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user):
    """Valid credentials return a JWT and the user."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "alice@example.com",
        "password": "testpassword123",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["id"] == test_user.id


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user):
    response = await client.post("/api/v1/auth/login", json={
        "email": "alice@example.com",
        "password": "wrongpassword",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_user(client: AsyncClient, db_session, test_user):
    test_user.is_active = False
    await db_session.commit()

    response = await client.post("/api/v1/auth/login", json={
        "email": "alice@example.com",
        "password": "testpassword123",
    })
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_returns_token_identity(client: AsyncClient, owner, owner_headers):
    response = await client.get("/api/v1/auth/me", headers=owner_headers)
    assert response.status_code == 200
    assert response.json() == {"user": {"id": owner.id, "role": "owner", "name": "Olivia"}}


@pytest.mark.asyncio
async def test_me_without_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_me_with_garbage_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


@pytest.mark.asyncio
async def test_me_with_expired_token(client: AsyncClient, test_user):
    token = create_access_token(
        data={"sub": test_user.id, "role": "user", "name": "Alice"},
        expires_delta=timedelta(minutes=-5),
    )
    response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
