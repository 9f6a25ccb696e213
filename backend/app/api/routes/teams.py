"""
Team request endpoints: submission and event-manager review.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.accommodation import AccommodationResponse
from app.schemas.team import (
    TeamRequestCreate,
    TeamRequestResponse,
    TeamRejection,
    TeamApprovalResponse,
    TeamMemberResponse,
    MemberLink,
)
from app.services.team_service import (
    create_team_request,
    get_team_request_for_actor,
    list_pending_team_requests,
    approve_team_request,
    reject_team_request,
    link_member_to_user,
)
from app.services.cache_service import invalidate_after_commit
from app.core.security import Actor, get_current_actor

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.post("/", response_model=TeamRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_team_request(
    team_data: TeamRequestCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Submit a team and its members for event-manager approval."""
    return await create_team_request(db, actor, team_data)


@router.get("/pending", response_model=list[TeamRequestResponse])
async def list_pending(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await list_pending_team_requests(db, actor)


@router.get("/{team_request_id}", response_model=TeamRequestResponse)
async def get_team(
    team_request_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await get_team_request_for_actor(db, actor, team_request_id)


@router.patch("/{team_request_id}/approve", response_model=TeamApprovalResponse)
async def approve_team(
    team_request_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Approve a team request.
    Opens one pending accommodation request per member who needs a room.
    """
    team_request, accommodations = await approve_team_request(db, actor, team_request_id)
    await invalidate_after_commit(db)
    return TeamApprovalResponse(
        team_request=TeamRequestResponse.model_validate(team_request),
        accommodation_requests=[AccommodationResponse.model_validate(a) for a in accommodations],
    )


@router.patch("/{team_request_id}/reject", response_model=TeamRequestResponse)
async def reject_team(
    team_request_id: int,
    rejection: TeamRejection,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await reject_team_request(db, actor, team_request_id, rejection.reason)


@router.put("/{team_request_id}/members/{team_member_id}/user", response_model=TeamMemberResponse)
async def link_member(
    team_request_id: int,
    team_member_id: int,
    link: MemberLink,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Link a team member to the player account that will check in."""
    return await link_member_to_user(db, actor, team_request_id, team_member_id, link.user_id)
