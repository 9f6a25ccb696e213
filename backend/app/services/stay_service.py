"""
Check-in / check-out for confirmed accommodation requests.

This is a second axis next to the request status: it only moves once a
request is confirmed.

    check_in_status:  pending ─▶ checked_in     (repeat check-in is a no-op)
    check_out_status: pending ─▶ checked_out    (needs checked_in; rotates QR)

A player acts on the request of the team member record linked to their
account; a team manager acts on every request of the teams they manage,
one member at a time. Bulk actions report per member: one member in the
wrong state does not block the rest of the team.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.accommodation import (
    AccommodationRequest,
    CHECK_IN_PENDING,
    CHECK_OUT_PENDING,
    CHECKED_IN,
    CHECKED_OUT,
    CONFIRMED,
)
from app.models.team import TeamMember, TeamRequest
from app.core.exceptions import InvalidStateTransition, NotFound, Unauthorized, WorkflowError
from app.core.logging import get_logger
from app.core.metrics import record_transition
from app.core.security import Actor, PLAYER, TEAM_MANAGER, require_role
from app.services import notification_service
from app.services.accommodation_service import get_accommodation, list_team_accommodations, transition
from app.services.confirmation_service import new_qr_token
from app.utils.datetime_utils import as_utc, utcnow

logger = get_logger(__name__)

STAY_ROLES = {PLAYER, TEAM_MANAGER}


async def _ensure_stay_actor(
    db: AsyncSession,
    actor: Actor,
    accommodation: AccommodationRequest,
) -> Optional[TeamMember]:
    require_role(actor, STAY_ROLES, "check guests in or out")
    member = await db.get(TeamMember, accommodation.team_member_id)

    if actor.role == PLAYER:
        if member is None or member.user_id != actor.user_id:
            raise Unauthorized(
                f"Accommodation request {accommodation.id} does not belong to you",
                accommodation_id=accommodation.id,
            )
    else:
        team_request = await db.get(TeamRequest, accommodation.team_request_id)
        if team_request is None or team_request.manager_id != actor.user_id:
            raise Unauthorized(
                f"Accommodation request {accommodation.id} is not for a team you manage",
                accommodation_id=accommodation.id,
            )
    return member


def _refuse(accommodation: AccommodationRequest, event: str, detail: str) -> InvalidStateTransition:
    record_transition(event, success=False)
    logger.warning(
        "stay_transition_refused",
        accommodation_id=accommodation.id,
        transition=event,
        status=accommodation.status,
        check_in_status=accommodation.check_in_status,
        check_out_status=accommodation.check_out_status,
    )
    return InvalidStateTransition(detail, accommodation_id=accommodation.id)


async def _check_in(db: AsyncSession, actor: Actor, accommodation: AccommodationRequest) -> AccommodationRequest:
    if accommodation.status != CONFIRMED:
        raise _refuse(
            accommodation,
            "check_in",
            f"Accommodation request {accommodation.id} is '{accommodation.status}', not confirmed",
        )

    if accommodation.check_in_status == CHECKED_IN:
        logger.info("check_in_noop", accommodation_id=accommodation.id)
        return accommodation

    checked_in = await transition(
        db,
        accommodation,
        (CONFIRMED,),
        {"check_in_status": CHECKED_IN, "actual_check_in_time": utcnow()},
        AccommodationRequest.check_in_status == CHECK_IN_PENDING,
    )
    if not checked_in:
        if accommodation.check_in_status == CHECKED_IN:
            return accommodation
        raise _refuse(accommodation, "check_in", f"Accommodation request {accommodation.id} changed concurrently")

    record_transition("check_in", success=True)
    logger.info("accommodation_checked_in", accommodation_id=accommodation.id, actor_id=actor.user_id)
    return accommodation


async def _check_out(
    db: AsyncSession,
    actor: Actor,
    accommodation: AccommodationRequest,
    member: Optional[TeamMember],
    is_early_checkout: bool,
) -> AccommodationRequest:
    if (
        accommodation.status != CONFIRMED
        or accommodation.check_in_status != CHECKED_IN
        or accommodation.check_out_status != CHECK_OUT_PENDING
    ):
        raise _refuse(
            accommodation,
            "check_out",
            f"Accommodation request {accommodation.id} cannot be checked out at this time",
        )

    now = utcnow()
    scheduled = as_utc(accommodation.check_out_date)
    early = is_early_checkout or (scheduled is not None and now < scheduled)
    previous_qr = accommodation.qr_code

    checked_out = await transition(
        db,
        accommodation,
        (CONFIRMED,),
        {
            "check_out_status": CHECKED_OUT,
            "actual_check_out_time": now,
            "is_early_checkout": early,
            "qr_code": new_qr_token(),
        },
        AccommodationRequest.check_in_status == CHECKED_IN,
        AccommodationRequest.check_out_status == CHECK_OUT_PENDING,
    )
    if not checked_out:
        raise _refuse(accommodation, "check_out", f"Accommodation request {accommodation.id} changed concurrently")

    record_transition("check_out", success=True)
    logger.info(
        "accommodation_checked_out",
        accommodation_id=accommodation.id,
        early=early,
        qr_rotated=accommodation.qr_code != previous_qr,
        actor_id=actor.user_id,
    )
    notification_service.notify_checked_out(member, accommodation)
    return accommodation


async def check_in(db: AsyncSession, actor: Actor, accommodation_id: int) -> AccommodationRequest:
    """Mark a confirmed stay as checked in."""
    accommodation = await get_accommodation(db, accommodation_id)
    await _ensure_stay_actor(db, actor, accommodation)
    return await _check_in(db, actor, accommodation)


async def check_out(
    db: AsyncSession,
    actor: Actor,
    accommodation_id: int,
    is_early_checkout: bool = False,
) -> AccommodationRequest:
    """
    Mark a checked-in stay as checked out and rotate its QR token.
    Leaving before the scheduled check-out date flags the stay as early
    even when the caller does not say so.
    """
    accommodation = await get_accommodation(db, accommodation_id)
    member = await _ensure_stay_actor(db, actor, accommodation)
    return await _check_out(db, actor, accommodation, member, is_early_checkout)


async def _team_for_manager(db: AsyncSession, actor: Actor, team_request_id: int) -> TeamRequest:
    require_role(actor, TEAM_MANAGER, "run bulk check-in or check-out")
    team_request = await db.get(TeamRequest, team_request_id)
    if team_request is None:
        raise NotFound(f"Team request {team_request_id} not found")
    if team_request.manager_id != actor.user_id:
        raise Unauthorized(f"Team request {team_request_id} is not managed by you")
    return team_request


def _bulk_item(accommodation: AccommodationRequest, outcome: str, detail: Optional[str] = None) -> dict:
    return {
        "accommodation_id": accommodation.id,
        "team_member_id": accommodation.team_member_id,
        "outcome": outcome,
        "detail": detail,
    }


async def bulk_check_in(db: AsyncSession, actor: Actor, team_request_id: int) -> list[dict]:
    """
    Check in every confirmed member of the team.
    Members already checked in are reported as skipped.
    """
    await _team_for_manager(db, actor, team_request_id)

    results = []
    for accommodation in await list_team_accommodations(db, team_request_id):
        if accommodation.status == CONFIRMED and accommodation.check_in_status == CHECKED_IN:
            results.append(_bulk_item(accommodation, "skipped", "already checked in"))
            continue
        try:
            await _check_in(db, actor, accommodation)
            results.append(_bulk_item(accommodation, "ok"))
        except WorkflowError as e:
            results.append(_bulk_item(accommodation, "error", e.detail))

    logger.info(
        "bulk_check_in_completed",
        team_request_id=team_request_id,
        succeeded=sum(1 for r in results if r["outcome"] == "ok"),
        total=len(results),
    )
    return results


async def bulk_check_out(
    db: AsyncSession,
    actor: Actor,
    team_request_id: int,
    is_early_checkout: bool = False,
) -> list[dict]:
    """
    Check out every checked-in member of the team.
    Members that are already checked out are reported as skipped.
    """
    await _team_for_manager(db, actor, team_request_id)

    results = []
    for accommodation in await list_team_accommodations(db, team_request_id):
        if accommodation.check_out_status == CHECKED_OUT:
            results.append(_bulk_item(accommodation, "skipped", "already checked out"))
            continue
        try:
            member = await db.get(TeamMember, accommodation.team_member_id)
            await _check_out(db, actor, accommodation, member, is_early_checkout)
            results.append(_bulk_item(accommodation, "ok"))
        except WorkflowError as e:
            results.append(_bulk_item(accommodation, "error", e.detail))

    logger.info(
        "bulk_check_out_completed",
        team_request_id=team_request_id,
        succeeded=sum(1 for r in results if r["outcome"] == "ok"),
        total=len(results),
        early=is_early_checkout,
    )
    return results
