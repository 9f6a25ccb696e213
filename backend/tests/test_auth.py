"""
Tests for authentication endpoints: registration, login and bearer tokens.
"""

import pytest
from httpx import AsyncClient

from app.core.security import decode_access_token
from tests.conftest import headers_for


def registration(**overrides) -> dict:
    data = {
        "email": "new@example.com",
        "password": "securepassword123",
        "first_name": "Nia",
        "last_name": "Okafor",
        "role": "team_manager",
        "organization": "Lagos Strikers",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Successful registration returns user data with the role."""
    response = await client.post("/api/v1/auth/register", json=registration())
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "team_manager"
    assert data["is_active"] is True
    assert "hashed_password" not in data  # Never expose password hash


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, event_manager):
    """Duplicate email returns 409."""
    response = await client.post(
        "/api/v1/auth/register", json=registration(email="events@example.com")
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_unknown_role(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json=registration(role="superuser"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    """Password under 8 chars returns 422."""
    response = await client.post("/api/v1/auth/register", json=registration(password="short"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_token_carries_role(client: AsyncClient, hotel_manager):
    """Valid credentials return a JWT with the user id and role."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "hotel@example.com",
        "password": "testpassword123",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"

    claims = decode_access_token(data["access_token"])
    assert claims["sub"] == str(hotel_manager.id)
    assert claims["role"] == "hotel_manager"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, hotel_manager):
    """Wrong password returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "hotel@example.com",
        "password": "wrongpassword",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_nonexistent_email(client: AsyncClient):
    """Non-existent email returns 401."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "nobody@example.com",
        "password": "anypassword123",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_deactivated_account(client: AsyncClient, db_session, player):
    player.is_active = False
    await db_session.commit()

    response = await client.post("/api/v1/auth/login", json={
        "email": "player@example.com",
        "password": "testpassword123",
    })
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_and_invalid_token(client: AsyncClient):
    """Protected routes answer 401 without a usable bearer token."""
    assert (await client.get("/api/v1/accommodations/mine")).status_code == 401

    response = await client.get(
        "/api/v1/accommodations/mine",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_profile_lists_role_permissions(client: AsyncClient, hotel_manager):
    response = await client.get("/api/v1/auth/me", headers=headers_for(hotel_manager))

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "hotel@example.com"
    assert data["permissions"] == ["manage_accommodations", "view_bookings"]


@pytest.mark.asyncio
async def test_profile_of_deactivated_account_is_401(client: AsyncClient, db_session, player):
    headers = headers_for(player)
    player.is_active = False
    await db_session.commit()

    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401
