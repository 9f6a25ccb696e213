"""
Tests for dashboard read models and the health/metrics endpoints.
"""

import pytest
from httpx import AsyncClient

from app.models.accommodation import AccommodationRequest
from app.services import accommodation_service, cache_service, dashboard_service
from tests.conftest import TestSessionLocal, headers_for


@pytest.mark.asyncio
async def test_summary_counts(db_session, event_actor, hotel_actor, approved_team, hotel, room):
    _, accommodations = approved_team
    first, second, third = accommodations
    for accommodation in (first, second):
        await accommodation_service.assign_hotel(
            db_session, event_actor, accommodation.id, hotel_id=hotel.id, room_category_id=room.id,
        )
    await accommodation_service.respond_to_assignment(db_session, hotel_actor, second.id, approve=False, reason="full")

    summary = await dashboard_service.get_summary(db_session, event_actor)

    assert summary["status_counts"] == {"pending": 1, "hotel_assigned": 1, "hotel_rejected": 1}
    assert summary["awaiting_hotel_response"] == 1
    assert summary["needs_reassignment"] == 1
    assert summary["incomplete_teams"] == 1
    assert summary["cached"] is False


@pytest.mark.asyncio
async def test_incomplete_teams_ignore_cancelled_requests(
    db_session, event_actor, hotel_actor, approved_team, hotel, room
):
    team_request, accommodations = approved_team

    incomplete = await dashboard_service.list_incomplete_teams(db_session, event_actor)
    assert incomplete == [{
        "team_request_id": team_request.id,
        "team_name": team_request.team_name,
        "total_requests": 3,
        "confirmed": 0,
        "outstanding": 3,
    }]

    await accommodation_service.assign_hotel(
        db_session, event_actor, accommodations[0].id, hotel_id=hotel.id, room_category_id=room.id,
    )
    await accommodation_service.respond_to_assignment(db_session, hotel_actor, accommodations[0].id, approve=True)
    for accommodation in accommodations[1:]:
        await accommodation_service.assign_hotel(
            db_session, event_actor, accommodation.id, hotel_id=hotel.id, room_category_id=room.id,
        )
        await accommodation_service.cancel_accommodation(db_session, event_actor, accommodation.id)

    assert await dashboard_service.list_incomplete_teams(db_session, event_actor) == []


@pytest.mark.asyncio
async def test_dashboard_endpoints(client: AsyncClient, event_manager, player, approved_team):
    response = await client.get("/api/v1/dashboard/summary", headers=headers_for(event_manager))
    assert response.status_code == 200
    assert response.json()["status_counts"] == {"pending": 3}

    response = await client.get("/api/v1/dashboard/incomplete-teams", headers=headers_for(event_manager))
    assert response.status_code == 200
    assert response.json()[0]["outstanding"] == 3

    response = await client.get("/api/v1/dashboard/summary", headers=headers_for(player))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}
    assert response.json()["database"] == {"status": "ok"}

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "accommodation_transitions_total" in response.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "trace-42"})

    assert response.headers["X-Request-ID"] == "trace-42"
    assert response.headers["X-Response-Time"].endswith("ms")
    assert len((await client.get("/")).headers["X-Request-ID"]) == 8


@pytest.mark.asyncio
async def test_views_are_dropped_after_the_transition_commits(
    client: AsyncClient, monkeypatch, event_manager, hotel, room, pending_accommodation
):
    visible_at_invalidation = []

    async def read_from_another_session():
        async with TestSessionLocal() as session:
            accommodation = await session.get(AccommodationRequest, pending_accommodation.id)
            visible_at_invalidation.append(accommodation.status)

    monkeypatch.setattr(cache_service, "invalidate_dashboard_cache", read_from_another_session)

    response = await client.post(
        f"/api/v1/accommodations/{pending_accommodation.id}/assign",
        json={"hotel_id": hotel.id, "room_category_id": room.id},
        headers=headers_for(event_manager),
    )

    assert response.status_code == 200
    assert visible_at_invalidation == ["hotel_assigned"]
