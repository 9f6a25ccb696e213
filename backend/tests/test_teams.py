"""
Tests for team request submission and approval.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.exceptions import InvalidAssignment, InvalidStateTransition, NotFound, Unauthorized
from app.models.accommodation import AccommodationRequest
from app.services import accommodation_service, stay_service, team_service
from tests.conftest import actor_for, headers_for, make_user, team_payload


@pytest.mark.asyncio
async def test_approval_opens_one_request_per_member_needing_a_room(
    db_session, team_actor, event_actor
):
    payload = team_payload(members=3)
    payload.members[2].requires_accommodation = False
    team_request = await team_service.create_team_request(db_session, team_actor, payload)
    assert team_request.status == "pending"
    assert len(team_request.members) == 3

    team_request, accommodations = await team_service.approve_team_request(
        db_session, event_actor, team_request.id
    )

    assert team_request.status == "approved"
    assert team_request.approved_by == event_actor.user_id
    assert len(accommodations) == 2
    assert all(a.status == "pending" for a in accommodations)
    assert accommodations[0].accommodation_preferences == "Ground floor"
    assert accommodations[0].check_in_date is not None


@pytest.mark.asyncio
async def test_creating_requests_twice_is_idempotent(db_session, approved_team):
    team_request, accommodations = approved_team

    again = await accommodation_service.create_accommodation_requests(db_session, team_request.id)

    assert again == []
    rows = (await db_session.execute(
        select(AccommodationRequest).where(AccommodationRequest.team_request_id == team_request.id)
    )).scalars().all()
    assert len(rows) == len(accommodations)


@pytest.mark.asyncio
async def test_requests_need_an_approved_team(db_session, team_actor):
    team_request = await team_service.create_team_request(db_session, team_actor, team_payload())

    with pytest.raises(InvalidStateTransition):
        await accommodation_service.create_accommodation_requests(db_session, team_request.id)


@pytest.mark.asyncio
async def test_team_request_cannot_be_reviewed_twice(db_session, approved_team, event_actor):
    team_request, _ = approved_team

    with pytest.raises(InvalidStateTransition):
        await team_service.approve_team_request(db_session, event_actor, team_request.id)
    with pytest.raises(InvalidStateTransition):
        await team_service.reject_team_request(db_session, event_actor, team_request.id, "late")


@pytest.mark.asyncio
async def test_only_event_managers_approve(db_session, team_actor):
    team_request = await team_service.create_team_request(db_session, team_actor, team_payload())

    with pytest.raises(Unauthorized):
        await team_service.approve_team_request(db_session, team_actor, team_request.id)


@pytest.mark.asyncio
async def test_submit_and_approve_over_http(client: AsyncClient, team_manager, event_manager):
    response = await client.post(
        "/api/v1/teams/",
        json={
            "team_name": "Harbour Hawks",
            "sport": "Basketball",
            "members": [
                {"first_name": "Ada", "last_name": "Hawk", "requires_accommodation": True},
                {"first_name": "Bo", "last_name": "Hawk"},
            ],
        },
        headers=headers_for(team_manager),
    )
    assert response.status_code == 201
    team_id = response.json()["id"]
    assert response.json()["status"] == "pending"

    pending = await client.get("/api/v1/teams/pending", headers=headers_for(event_manager))
    assert [t["id"] for t in pending.json()] == [team_id]

    response = await client.patch(
        f"/api/v1/teams/{team_id}/approve", headers=headers_for(event_manager)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["team_request"]["status"] == "approved"
    assert len(data["accommodation_requests"]) == 1

    response = await client.patch(
        f"/api/v1/teams/{team_id}/approve", headers=headers_for(event_manager)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reject_over_http(client: AsyncClient, db_session, team_actor, event_manager):
    team_request = await team_service.create_team_request(db_session, team_actor, team_payload())
    await db_session.commit()

    response = await client.patch(
        f"/api/v1/teams/{team_request.id}/reject",
        json={"reason": "Roster incomplete"},
        headers=headers_for(event_manager),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejection_reason"] == "Roster incomplete"


@pytest.mark.asyncio
async def test_team_visible_to_its_manager_only(client: AsyncClient, approved_team, team_manager, player):
    team_request, _ = approved_team

    assert (await client.get(
        f"/api/v1/teams/{team_request.id}", headers=headers_for(team_manager)
    )).status_code == 200
    assert (await client.get(
        f"/api/v1/teams/{team_request.id}", headers=headers_for(player)
    )).status_code == 403


@pytest.mark.asyncio
async def test_invalid_stay_dates_rejected(client: AsyncClient, team_manager):
    response = await client.post(
        "/api/v1/teams/",
        json={
            "team_name": "Backwards",
            "sport": "Rugby",
            "check_in_date": "2026-07-10T12:00:00Z",
            "check_out_date": "2026-07-01T12:00:00Z",
            "members": [{"first_name": "A", "last_name": "B"}],
        },
        headers=headers_for(team_manager),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_member_accounts_must_be_existing_players(client: AsyncClient, team_manager, event_manager):
    def submission(user_id):
        return {
            "team_name": "Linked Lions",
            "sport": "Hockey",
            "members": [{"first_name": "Cy", "last_name": "Lion", "user_id": user_id}],
        }

    response = await client.post("/api/v1/teams/", json=submission(987654), headers=headers_for(team_manager))
    assert response.status_code == 404

    response = await client.post(
        "/api/v1/teams/", json=submission(event_manager.id), headers=headers_for(team_manager)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_one_account_per_roster(db_session, team_actor, player):
    payload = team_payload(members=2, player_id=player.id)
    payload.members[1].user_id = player.id

    with pytest.raises(InvalidAssignment):
        await team_service.create_team_request(db_session, team_actor, payload)


@pytest.mark.asyncio
async def test_player_linked_after_submission_can_check_in(
    db_session, team_actor, event_actor, hotel_actor, hotel, room
):
    team_request = await team_service.create_team_request(db_session, team_actor, team_payload(members=1))
    team_request, (accommodation,) = await team_service.approve_team_request(
        db_session, event_actor, team_request.id
    )
    await accommodation_service.assign_hotel(
        db_session, event_actor, accommodation.id, hotel_id=hotel.id, room_category_id=room.id,
    )
    await accommodation_service.respond_to_assignment(db_session, hotel_actor, accommodation.id, approve=True)
    late_player = actor_for(await make_user(db_session, "player", "late@example.com"))

    with pytest.raises(Unauthorized):
        await stay_service.check_in(db_session, late_player, accommodation.id)

    member = await team_service.link_member_to_user(
        db_session, team_actor, team_request.id, accommodation.team_member_id, late_player.user_id
    )
    assert member.user_id == late_player.user_id

    checked_in = await stay_service.check_in(db_session, late_player, accommodation.id)
    assert checked_in.check_in_status == "checked_in"


@pytest.mark.asyncio
async def test_link_guards(db_session, approved_team, team_actor, event_actor, player):
    team_request, accommodations = approved_team
    second_member_id = accommodations[1].team_member_id
    rival = actor_for(await make_user(db_session, "team_manager", "rival@example.com"))
    other_team = await team_service.create_team_request(db_session, team_actor, team_payload(members=1))

    with pytest.raises(Unauthorized):
        await team_service.link_member_to_user(db_session, rival, team_request.id, second_member_id, player.id)
    with pytest.raises(NotFound):
        await team_service.link_member_to_user(
            db_session, team_actor, team_request.id, other_team.members[0].id, player.id
        )
    # Already linked to the first member of this team
    with pytest.raises(InvalidAssignment):
        await team_service.link_member_to_user(db_session, team_actor, team_request.id, second_member_id, player.id)

    unlinked = await team_service.link_member_to_user(
        db_session, event_actor, team_request.id, accommodations[0].team_member_id, None
    )
    assert unlinked.user_id is None
    moved = await team_service.link_member_to_user(
        db_session, team_actor, team_request.id, second_member_id, player.id
    )
    assert moved.user_id == player.id


@pytest.mark.asyncio
async def test_link_member_over_http(client: AsyncClient, db_session, team_manager, approved_team):
    team_request, accommodations = approved_team
    newcomer = await make_user(db_session, "player", "newcomer@example.com")
    member_id = accommodations[2].team_member_id

    response = await client.put(
        f"/api/v1/teams/{team_request.id}/members/{member_id}/user",
        json={"user_id": newcomer.id},
        headers=headers_for(team_manager),
    )
    assert response.status_code == 200
    assert response.json()["user_id"] == newcomer.id

    response = await client.put(
        f"/api/v1/teams/{team_request.id}/members/{member_id}/user",
        json={"user_id": 987654},
        headers=headers_for(team_manager),
    )
    assert response.status_code == 404
