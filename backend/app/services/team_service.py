"""
Team request service: submission and event-manager approval.

Approving a team request is what opens the accommodation workflow for its
members.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.team import TeamRequest, TeamMember
from app.models.user import User
from app.models.accommodation import AccommodationRequest
from app.schemas.team import TeamRequestCreate
from app.core.exceptions import InvalidAssignment, InvalidStateTransition, NotFound, Unauthorized
from app.core.logging import get_logger
from app.core.security import Actor, EVENT_MANAGER_ROLES, PLAYER, TEAM_MANAGER, require_role
from app.services.accommodation_service import create_accommodation_requests
from app.utils.datetime_utils import utcnow

logger = get_logger(__name__)

SUBMITTER_ROLES = EVENT_MANAGER_ROLES | {TEAM_MANAGER}


async def _ensure_player_account(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    if user.role != PLAYER:
        raise InvalidAssignment(f"User {user_id} is not a player account")
    return user


async def create_team_request(
    db: AsyncSession,
    actor: Actor,
    team_data: TeamRequestCreate,
) -> TeamRequest:
    """Submit a team with its members for approval."""
    require_role(actor, SUBMITTER_ROLES, "submit team requests")

    linked = [m.user_id for m in team_data.members if m.user_id is not None]
    if len(linked) != len(set(linked)):
        raise InvalidAssignment("A player account can be linked to only one team member")
    for user_id in linked:
        await _ensure_player_account(db, user_id)

    team_request = TeamRequest(
        team_name=team_data.team_name,
        sport=team_data.sport,
        tournament_id=team_data.tournament_id,
        manager_id=actor.user_id,
        status="pending",
        check_in_date=team_data.check_in_date,
        check_out_date=team_data.check_out_date,
        members=[TeamMember(**member.model_dump()) for member in team_data.members],
    )
    db.add(team_request)
    await db.flush()
    await db.refresh(team_request)

    logger.info(
        "team_request_created",
        team_request_id=team_request.id,
        team=team_request.team_name,
        members=len(team_data.members),
        needing_accommodation=sum(1 for m in team_data.members if m.requires_accommodation),
        actor_id=actor.user_id,
    )
    return team_request


async def get_team_request(db: AsyncSession, team_request_id: int) -> TeamRequest:
    """Get a single team request by ID."""
    result = await db.execute(select(TeamRequest).where(TeamRequest.id == team_request_id))
    team_request = result.scalar_one_or_none()

    if not team_request:
        raise NotFound(f"Team request {team_request_id} not found")
    return team_request


async def list_pending_team_requests(db: AsyncSession, actor: Actor) -> list[TeamRequest]:
    require_role(actor, EVENT_MANAGER_ROLES, "review team requests")
    result = await db.execute(
        select(TeamRequest)
        .where(TeamRequest.status == "pending")
        .order_by(TeamRequest.created_at.asc(), TeamRequest.id.asc())
    )
    return list(result.scalars().all())


async def approve_team_request(
    db: AsyncSession,
    actor: Actor,
    team_request_id: int,
) -> tuple[TeamRequest, list[AccommodationRequest]]:
    """
    Approve a pending team request and open one accommodation request per
    member who needs a room.
    """
    require_role(actor, EVENT_MANAGER_ROLES, "approve team requests")
    team_request = await get_team_request(db, team_request_id)

    if team_request.status != "pending":
        raise InvalidStateTransition(
            f"Team request {team_request_id} is already {team_request.status}"
        )

    team_request.status = "approved"
    team_request.approved_by = actor.user_id
    team_request.approved_at = utcnow()
    team_request.rejection_reason = None
    await db.flush()

    accommodations = await create_accommodation_requests(db, team_request.id)
    await db.refresh(team_request)

    logger.info(
        "team_request_approved",
        team_request_id=team_request.id,
        accommodation_requests=len(accommodations),
        actor_id=actor.user_id,
    )
    return team_request, accommodations


async def reject_team_request(
    db: AsyncSession,
    actor: Actor,
    team_request_id: int,
    reason: str,
) -> TeamRequest:
    require_role(actor, EVENT_MANAGER_ROLES, "reject team requests")
    team_request = await get_team_request(db, team_request_id)

    if team_request.status != "pending":
        raise InvalidStateTransition(
            f"Team request {team_request_id} is already {team_request.status}"
        )

    team_request.status = "rejected"
    team_request.rejection_reason = reason
    await db.flush()
    await db.refresh(team_request)

    logger.info("team_request_rejected", team_request_id=team_request.id, actor_id=actor.user_id)
    return team_request


async def get_team_request_for_actor(
    db: AsyncSession,
    actor: Actor,
    team_request_id: int,
) -> TeamRequest:
    """Event managers see every team; a team manager only the teams they submitted."""
    require_role(actor, SUBMITTER_ROLES, "view team requests")
    team_request = await get_team_request(db, team_request_id)

    if not actor.is_event_manager and team_request.manager_id != actor.user_id:
        raise Unauthorized(f"Team request {team_request_id} is not managed by you")
    return team_request


async def link_member_to_user(
    db: AsyncSession,
    actor: Actor,
    team_request_id: int,
    team_member_id: int,
    user_id: Optional[int],
) -> TeamMember:
    """
    Link a roster entry to a player account, or unlink it with None.

    The only change allowed to a member after submission. A linked player
    can check in and out of the member's accommodation.
    """
    team_request = await get_team_request_for_actor(db, actor, team_request_id)

    member = await db.get(TeamMember, team_member_id)
    if member is None or member.team_request_id != team_request.id:
        raise NotFound(f"Team member {team_member_id} not found in team request {team_request_id}")

    if user_id is not None:
        await _ensure_player_account(db, user_id)
        taken = await db.execute(
            select(TeamMember.id).where(
                TeamMember.team_request_id == team_request.id,
                TeamMember.user_id == user_id,
                TeamMember.id != member.id,
            )
        )
        if taken.first() is not None:
            raise InvalidAssignment(
                f"User {user_id} is already linked to another member of this team"
            )

    previous = member.user_id
    member.user_id = user_id
    await db.flush()
    await db.refresh(member)

    logger.info(
        "team_member_linked",
        team_request_id=team_request.id,
        team_member_id=member.id,
        user_id=user_id,
        previous_user_id=previous,
        actor_id=actor.user_id,
    )
    return member
