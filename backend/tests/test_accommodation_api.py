"""
Tests for the accommodation endpoints: status codes and role gating.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import headers_for, make_hotel, make_room


@pytest.mark.asyncio
async def test_manual_assignment_and_approval(
    client: AsyncClient, event_manager, hotel_manager, hotel, room, pending_accommodation
):
    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"hotel_id": hotel.id, "room_category_id": room.id},
        headers=headers_for(event_manager),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "hotel_assigned"

    inbox = await client.get(
        "/api/v1/accommodations/hotel-manager/pending", headers=headers_for(hotel_manager)
    )
    assert [a["id"] for a in inbox.json()] == [pending_accommodation.id]

    response = await client.patch(
        f"/api/v1/accommodations/{pending_accommodation.id}/respond",
        json={"approve": True},
        headers=headers_for(hotel_manager),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "confirmed"
    assert len(data["confirmation_code"]) == 8

    response = await client.patch(
        f"/api/v1/accommodations/{pending_accommodation.id}/respond",
        json={"approve": True},
        headers=headers_for(hotel_manager),
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_assignment_status_codes(
    client: AsyncClient, db_session, event_manager, hotel_manager, cluster, hotel, pending_accommodation
):
    headers = headers_for(event_manager)
    pending_hotel = await make_hotel(db_session, hotel_manager, cluster, approved="pending")
    pending_room = await make_room(db_session, pending_hotel)
    sold_out = await make_room(db_session, hotel, total=1, available=0)

    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"hotel_id": pending_hotel.id, "room_category_id": pending_room.id},
        headers=headers,
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"hotel_id": hotel.id, "room_category_id": sold_out.id},
        headers=headers,
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/v1/accommodations/9999/assign",
        json={"hotel_id": hotel.id, "room_category_id": sold_out.id},
        headers=headers,
    )
    assert response.status_code == 404

    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"automatic": True},
        headers=headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_role_gating(
    client: AsyncClient, team_manager, player, other_hotel_manager, hotel, room, assigned_accommodation
):
    response = await client.post(
        f"/api/v1/accommodations/{assigned_accommodation.id}/assign",
        json={"hotel_id": hotel.id, "room_category_id": room.id},
        headers=headers_for(team_manager),
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/v1/accommodations/{assigned_accommodation.id}/respond",
        json={"approve": True},
        headers=headers_for(other_hotel_manager),
    )
    assert response.status_code == 403

    response = await client.get("/api/v1/accommodations/rejected", headers=headers_for(player))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reject_without_reason_is_422(client: AsyncClient, hotel_manager, assigned_accommodation):
    response = await client.patch(
        f"/api/v1/accommodations/{assigned_accommodation.id}/respond",
        json={"approve": False},
        headers=headers_for(hotel_manager),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_stay_over_http(
    client: AsyncClient, player, hotel_manager, team_manager, approved_team, confirmed_accommodation
):
    team_request, _ = approved_team
    qr = confirmed_accommodation.qr_code

    mine = await client.get("/api/v1/accommodations/mine", headers=headers_for(player))
    assert [a["id"] for a in mine.json()] == [confirmed_accommodation.id]

    response = await client.post(
        "/api/v1/accommodations/qr/verify", json={"qr_code": qr}, headers=headers_for(hotel_manager)
    )
    assert response.status_code == 200
    assert response.json()["valid"] is True

    response = await client.post(
        f"/api/v1/accommodations/{confirmed_accommodation.id}/check-out",
        headers=headers_for(player),
    )
    assert response.status_code == 409

    response = await client.post(
        f"/api/v1/accommodations/team/{team_request.id}/bulk-check-in",
        headers=headers_for(team_manager),
    )
    assert response.status_code == 200
    assert response.json()["succeeded"] == 1

    checked_in = await client.get(
        f"/api/v1/accommodations/team/{team_request.id}?check_in_status=checked_in",
        headers=headers_for(team_manager),
    )
    assert [a["id"] for a in checked_in.json()] == [confirmed_accommodation.id]

    response = await client.post(
        f"/api/v1/accommodations/{confirmed_accommodation.id}/check-out",
        json={"is_early_checkout": True},
        headers=headers_for(player),
    )
    assert response.status_code == 200
    assert response.json()["check_out_status"] == "checked_out"
    assert response.json()["qr_code"] != qr

    response = await client.post(
        "/api/v1/accommodations/qr/verify", json={"qr_code": qr}, headers=headers_for(hotel_manager)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_over_http(client: AsyncClient, event_manager, team_manager, confirmed_accommodation):
    response = await client.post(
        f"/api/v1/accommodations/{confirmed_accommodation.id}/cancel",
        headers=headers_for(team_manager),
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/accommodations/{confirmed_accommodation.id}/cancel",
        headers=headers_for(event_manager),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_reversed_stay_dates_are_422(client: AsyncClient, event_manager, hotel, room, pending_accommodation):
    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={
            "hotel_id": hotel.id,
            "room_category_id": room.id,
            "check_in_date": "2026-07-10T12:00:00Z",
            "check_out_date": "2026-07-01T12:00:00Z",
        },
        headers=headers_for(event_manager),
    )
    assert response.status_code == 422

    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"hotel_id": hotel.id, "room_category_id": room.id, "check_out_date": "2020-01-01T00:00:00Z"},
        headers=headers_for(event_manager),
    )
    assert response.status_code == 400
