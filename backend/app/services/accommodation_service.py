"""
Accommodation workflow: assignment, hotel response, confirmation, cancellation.

STATE MACHINE
=============

    pending ──assign──▶ hotel_assigned ──approve──▶ hotel_approved ──▶ confirmed
                              │                                          │
                              └──reject──▶ hotel_rejected ──assign──▶ ...│
    hotel_assigned / confirmed (not checked in) ──cancel──▶ cancelled    │
                                                                         ▼
                                                    check-in / check-out (stay_service)

Who may act:
  - assign / cancel: event manager roles
  - approve / reject: the hotel manager who owns the assigned hotel
  - hotels with auto_approve_bookings are approved at assignment time

CONCURRENCY STRATEGY: Guarded Transitions
=========================================

Every transition is a single conditional UPDATE:

    UPDATE accommodation_requests SET status = :to, ..., version = version + 1
    WHERE id = :id AND status IN (:expected) AND version = :seen_version

If rows_affected == 0 another actor moved the request first and the
caller gets InvalidStateTransition. Two concurrent approvals therefore
confirm the request once; the second one fails instead of silently
succeeding. Transitions are not retried.

Room reservations (inventory_service) are taken before the state change;
if the state change loses its race the reservation is given back before
raising, so a failed assignment never leaks a room.
"""

import time
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.accommodation import (
    AccommodationRequest,
    ASSIGNABLE_STATUSES,
    CANCELLED,
    CHECK_IN_PENDING,
    CONFIRMED,
    HOTEL_APPROVED,
    HOTEL_ASSIGNED,
    HOTEL_REJECTED,
    PENDING,
)
from app.models.hotel import Hotel, RoomCategory
from app.models.team import TeamMember, TeamRequest
from app.core.exceptions import (
    InvalidAssignment,
    InvalidStateTransition,
    NoAvailability,
    NotFound,
    Unauthorized,
)
from app.core.logging import get_logger
from app.core.metrics import assignment_latency, record_transition
from app.core.security import Actor, EVENT_MANAGER_ROLES, HOTEL_MANAGER, require_role
from app.services import notification_service
from app.services.assignment_service import reserve_from_cluster
from app.services.confirmation_service import issue_confirmation_code, new_qr_token
from app.services.inventory_service import release_room, reserve_room
from app.utils.datetime_utils import as_utc, utcnow

logger = get_logger(__name__)

AUTO_APPROVE_REASON = "Auto-approved booking"


async def get_accommodation(db: AsyncSession, accommodation_id: int) -> AccommodationRequest:
    """Get a single accommodation request by ID."""
    result = await db.execute(
        select(AccommodationRequest)
        .where(AccommodationRequest.id == accommodation_id)
        .execution_options(populate_existing=True)
    )
    accommodation = result.scalar_one_or_none()

    if not accommodation:
        raise NotFound(f"Accommodation request {accommodation_id} not found")
    return accommodation


async def transition(
    db: AsyncSession,
    accommodation: AccommodationRequest,
    expected: tuple[str, ...],
    values: dict,
    *conditions,
) -> bool:
    """
    Apply a guarded state change and reload the row.
    Returns False when the row was no longer in an expected state.
    """
    result = await db.execute(
        update(AccommodationRequest)
        .where(
            AccommodationRequest.id == accommodation.id,
            AccommodationRequest.status.in_(expected),
            AccommodationRequest.version == accommodation.version,
            *conditions,
        )
        .values(**values, version=AccommodationRequest.version + 1)
        .execution_options(synchronize_session=False)
    )
    moved = result.rowcount == 1
    await db.refresh(accommodation)
    return moved


def _invalid_transition(
    accommodation: AccommodationRequest, event: str, expected: tuple[str, ...]
) -> InvalidStateTransition:
    record_transition(event, success=False)
    logger.warning(
        "accommodation_transition_refused",
        accommodation_id=accommodation.id,
        transition=event,
        status=accommodation.status,
        expected=list(expected),
    )
    return InvalidStateTransition(
        f"Cannot {event} accommodation request {accommodation.id} "
        f"in status '{accommodation.status}'",
        accommodation_id=accommodation.id,
    )


async def _get_member(db: AsyncSession, team_member_id: int) -> Optional[TeamMember]:
    return await db.get(TeamMember, team_member_id)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def create_accommodation_requests(
    db: AsyncSession,
    team_request_id: int,
) -> list[AccommodationRequest]:
    """
    Open one pending request per member who needs accommodation.

    Called once the team request is approved. Members that already have a
    request are skipped, so calling it twice creates nothing new.
    """
    team_request = await db.get(TeamRequest, team_request_id)
    if not team_request:
        raise NotFound(f"Team request {team_request_id} not found")

    if team_request.status != "approved":
        raise InvalidStateTransition(
            f"Team request {team_request_id} is '{team_request.status}', not approved"
        )

    members = (
        await db.execute(
            select(TeamMember)
            .where(
                TeamMember.team_request_id == team_request_id,
                TeamMember.requires_accommodation.is_(True),
            )
            .order_by(TeamMember.id)
        )
    ).scalars().all()

    existing = set(
        (
            await db.execute(
                select(AccommodationRequest.team_member_id).where(
                    AccommodationRequest.team_request_id == team_request_id
                )
            )
        ).scalars().all()
    )

    created = []
    for member in members:
        if member.id in existing:
            continue
        accommodation = AccommodationRequest(
            team_request_id=team_request_id,
            team_member_id=member.id,
            accommodation_preferences=member.accommodation_preferences,
            check_in_date=team_request.check_in_date,
            check_out_date=team_request.check_out_date,
            status=PENDING,
        )
        db.add(accommodation)
        created.append(accommodation)

    await db.flush()
    for accommodation in created:
        await db.refresh(accommodation)

    logger.info(
        "accommodation_requests_created",
        team_request_id=team_request_id,
        created=len(created),
        skipped=len(members) - len(created),
    )
    return created


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


async def _reserve_manual(
    db: AsyncSession,
    hotel_id: int,
    room_category_id: int,
) -> tuple[Hotel, RoomCategory]:
    hotel = await db.get(Hotel, hotel_id, populate_existing=True)
    if not hotel:
        raise NotFound(f"Hotel {hotel_id} not found")
    if hotel.approved != "approved":
        raise InvalidAssignment(f"Hotel {hotel_id} is '{hotel.approved}', not approved")

    room = await db.get(RoomCategory, room_category_id, populate_existing=True)
    if not room:
        raise NotFound(f"Room category {room_category_id} not found")
    if room.hotel_id != hotel.id:
        raise InvalidAssignment(
            f"Room category {room_category_id} does not belong to hotel {hotel_id}"
        )

    if not await reserve_room(db, room.id):
        raise NoAvailability(f"Room category {room_category_id} has no rooms available")

    await db.refresh(room)
    return hotel, room


async def assign_hotel(
    db: AsyncSession,
    actor: Actor,
    accommodation_id: int,
    *,
    hotel_id: Optional[int] = None,
    room_category_id: Optional[int] = None,
    cluster_id: Optional[int] = None,
    automatic: bool = False,
    check_in_date: Optional[datetime] = None,
    check_out_date: Optional[datetime] = None,
) -> AccommodationRequest:
    """
    Assign a hotel and room category, manually or from a cluster.

    Allowed from pending and hotel_rejected. One room of the chosen
    category is reserved. If the hotel auto-approves bookings the request
    is confirmed straight away.
    """
    require_role(actor, EVENT_MANAGER_ROLES, "assign hotels")
    started = time.perf_counter()

    accommodation = await get_accommodation(db, accommodation_id)
    if accommodation.status not in ASSIGNABLE_STATUSES:
        raise _invalid_transition(accommodation, "assign", ASSIGNABLE_STATUSES)

    stay_start = as_utc(check_in_date or accommodation.check_in_date)
    stay_end = as_utc(check_out_date or accommodation.check_out_date)
    if stay_start and stay_end and stay_end <= stay_start:
        raise InvalidAssignment("check_out_date must be after check_in_date")

    if automatic:
        if cluster_id is None:
            raise InvalidAssignment("Automatic assignment requires a cluster")
        hotel, room = await reserve_from_cluster(db, cluster_id)
    else:
        if hotel_id is None or room_category_id is None:
            raise InvalidAssignment("Manual assignment requires a hotel and a room category")
        hotel, room = await _reserve_manual(db, hotel_id, room_category_id)
        cluster_id = hotel.cluster_id

    values = {
        "status": HOTEL_ASSIGNED,
        "cluster_id": cluster_id,
        "hotel_id": hotel.id,
        "room_category_id": room.id,
        "assigned_by": actor.user_id,
        "assigned_at": utcnow(),
        "hotel_response_reason": None,
        "hotel_responded_by": None,
        "hotel_responded_at": None,
    }
    if check_in_date is not None:
        values["check_in_date"] = check_in_date
    if check_out_date is not None:
        values["check_out_date"] = check_out_date

    if not await transition(db, accommodation, ASSIGNABLE_STATUSES, values):
        await release_room(db, room.id)
        raise _invalid_transition(accommodation, "assign", ASSIGNABLE_STATUSES)

    record_transition("assign", success=True)
    assignment_latency.observe(time.perf_counter() - started)
    logger.info(
        "accommodation_assigned",
        accommodation_id=accommodation.id,
        hotel_id=hotel.id,
        room_category_id=room.id,
        cluster_id=cluster_id,
        automatic=automatic,
        actor_id=actor.user_id,
    )

    if hotel.auto_approve_bookings:
        accommodation = await _approve(db, accommodation, actor.user_id, AUTO_APPROVE_REASON)

    return accommodation


# ---------------------------------------------------------------------------
# Hotel response
# ---------------------------------------------------------------------------


async def _approve(
    db: AsyncSession,
    accommodation: AccommodationRequest,
    responder_id: int,
    reason: Optional[str],
) -> AccommodationRequest:
    approved = await transition(
        db,
        accommodation,
        (HOTEL_ASSIGNED,),
        {
            "status": HOTEL_APPROVED,
            "hotel_response_reason": reason,
            "hotel_responded_by": responder_id,
            "hotel_responded_at": utcnow(),
        },
    )
    if not approved:
        raise _invalid_transition(accommodation, "approve", (HOTEL_ASSIGNED,))

    code = await issue_confirmation_code(db)
    confirmed = await transition(
        db,
        accommodation,
        (HOTEL_APPROVED,),
        {"status": CONFIRMED, "confirmation_code": code, "qr_code": new_qr_token()},
        AccommodationRequest.confirmation_code.is_(None),
    )
    if not confirmed:
        raise _invalid_transition(accommodation, "confirm", (HOTEL_APPROVED,))

    record_transition("approve", success=True)
    logger.info(
        "accommodation_confirmed",
        accommodation_id=accommodation.id,
        hotel_id=accommodation.hotel_id,
        confirmation_code=accommodation.confirmation_code,
        actor_id=responder_id,
    )
    notification_service.notify_confirmed(
        await _get_member(db, accommodation.team_member_id), accommodation
    )
    return accommodation


async def _reject(
    db: AsyncSession,
    accommodation: AccommodationRequest,
    responder_id: int,
    reason: Optional[str],
) -> AccommodationRequest:
    if not reason or not reason.strip():
        raise InvalidAssignment("A reason is required when rejecting an assignment")

    room_category_id = accommodation.room_category_id
    rejected = await transition(
        db,
        accommodation,
        (HOTEL_ASSIGNED,),
        {
            "status": HOTEL_REJECTED,
            "hotel_response_reason": reason.strip(),
            "hotel_responded_by": responder_id,
            "hotel_responded_at": utcnow(),
            "hotel_id": None,
            "room_category_id": None,
        },
    )
    if not rejected:
        raise _invalid_transition(accommodation, "reject", (HOTEL_ASSIGNED,))

    await release_room(db, room_category_id)

    record_transition("reject", success=True)
    logger.info(
        "accommodation_rejected",
        accommodation_id=accommodation.id,
        room_category_id=room_category_id,
        reason=accommodation.hotel_response_reason,
        actor_id=responder_id,
    )
    notification_service.notify_rejected(
        await _get_member(db, accommodation.team_member_id), accommodation
    )
    return accommodation


async def respond_to_assignment(
    db: AsyncSession,
    actor: Actor,
    accommodation_id: int,
    *,
    approve: bool,
    reason: Optional[str] = None,
) -> AccommodationRequest:
    """
    Hotel manager approves or rejects an assignment at one of their hotels.

    Approval confirms the request (confirmation code and QR token issued).
    Rejection gives the room back and clears the hotel so the event
    manager can reassign.
    """
    require_role(actor, HOTEL_MANAGER, "respond to hotel assignments")

    accommodation = await get_accommodation(db, accommodation_id)
    event = "approve" if approve else "reject"
    if accommodation.status != HOTEL_ASSIGNED:
        raise _invalid_transition(accommodation, event, (HOTEL_ASSIGNED,))

    hotel = await db.get(Hotel, accommodation.hotel_id)
    if hotel is None or hotel.manager_id != actor.user_id:
        record_transition(event, success=False)
        raise Unauthorized(
            f"Accommodation request {accommodation_id} is not assigned to one of your hotels",
            accommodation_id=accommodation_id,
        )

    if approve:
        return await _approve(db, accommodation, actor.user_id, reason)
    return await _reject(db, accommodation, actor.user_id, reason)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


async def cancel_accommodation(
    db: AsyncSession,
    actor: Actor,
    accommodation_id: int,
) -> AccommodationRequest:
    """
    Withdraw an assigned or confirmed request before the guest checks in.
    The room goes back to the category; the confirmation code is kept.
    """
    require_role(actor, EVENT_MANAGER_ROLES, "cancel accommodation")
    cancellable = (HOTEL_ASSIGNED, CONFIRMED)

    accommodation = await get_accommodation(db, accommodation_id)
    if accommodation.status not in cancellable or accommodation.check_in_status != CHECK_IN_PENDING:
        raise _invalid_transition(accommodation, "cancel", cancellable)

    room_category_id = accommodation.room_category_id
    cancelled = await transition(
        db,
        accommodation,
        cancellable,
        {"status": CANCELLED},
        AccommodationRequest.check_in_status == CHECK_IN_PENDING,
    )
    if not cancelled:
        raise _invalid_transition(accommodation, "cancel", cancellable)

    await release_room(db, room_category_id)

    record_transition("cancel", success=True)
    logger.info(
        "accommodation_cancelled",
        accommodation_id=accommodation.id,
        room_category_id=room_category_id,
        actor_id=actor.user_id,
    )
    return accommodation


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------


async def list_team_accommodations(
    db: AsyncSession,
    team_request_id: int,
    *,
    check_in_status: Optional[str] = None,
    check_out_status: Optional[str] = None,
) -> list[AccommodationRequest]:
    """Requests of one team, optionally filtered by stay sub-state."""
    query = select(AccommodationRequest).where(
        AccommodationRequest.team_request_id == team_request_id
    )
    if check_in_status:
        query = query.where(
            AccommodationRequest.status == CONFIRMED,
            AccommodationRequest.check_in_status == check_in_status,
        )
    if check_out_status:
        query = query.where(
            AccommodationRequest.status == CONFIRMED,
            AccommodationRequest.check_out_status == check_out_status,
        )
    result = await db.execute(
        query.order_by(AccommodationRequest.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_pending_for_hotel_manager(
    db: AsyncSession,
    actor: Actor,
) -> list[AccommodationRequest]:
    """Assignments at the actor's hotels that still wait for a response."""
    require_role(actor, HOTEL_MANAGER, "view hotel assignments")
    result = await db.execute(
        select(AccommodationRequest)
        .join(Hotel, AccommodationRequest.hotel_id == Hotel.id)
        .where(
            Hotel.manager_id == actor.user_id,
            AccommodationRequest.status == HOTEL_ASSIGNED,
        )
        .order_by(AccommodationRequest.assigned_at.asc(), AccommodationRequest.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_rejected(db: AsyncSession, actor: Actor) -> list[AccommodationRequest]:
    """Requests a hotel turned down, waiting for the event manager to reassign."""
    require_role(actor, EVENT_MANAGER_ROLES, "view rejected accommodation requests")
    result = await db.execute(
        select(AccommodationRequest)
        .where(AccommodationRequest.status == HOTEL_REJECTED)
        .order_by(AccommodationRequest.hotel_responded_at.asc(), AccommodationRequest.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_for_player(db: AsyncSession, actor: Actor) -> list[AccommodationRequest]:
    """Requests of every team member record linked to the actor's account."""
    result = await db.execute(
        select(AccommodationRequest)
        .join(TeamMember, AccommodationRequest.team_member_id == TeamMember.id)
        .where(TeamMember.user_id == actor.user_id)
        .order_by(AccommodationRequest.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
