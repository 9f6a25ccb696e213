"""
Accommodation workflow endpoints.

Every state change invalidates the cached dashboard views; reads are never
cached since hotel managers and check-in desks need the current row.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.accommodation import (
    AccommodationResponse,
    AssignHotelRequest,
    RespondRequest,
    CheckOutRequest,
    BulkStayResponse,
    QrVerifyRequest,
    QrVerifyResponse,
)
from app.services import accommodation_service, stay_service
from app.services.team_service import get_team_request_for_actor
from app.services.confirmation_service import verify_qr_token
from app.services.cache_service import invalidate_after_commit
from app.core.security import Actor, EVENT_MANAGER_ROLES, HOTEL_MANAGER, get_current_actor, require_role

router = APIRouter(prefix="/accommodations", tags=["Accommodations"])


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------


@router.get("/team/{team_request_id}", response_model=list[AccommodationResponse])
async def list_team_accommodations(
    team_request_id: int,
    check_in_status: Optional[Literal["pending", "checked_in"]] = Query(None),
    check_out_status: Optional[Literal["pending", "checked_out"]] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Accommodation requests of a team.
    Filtering by check-in or check-out status narrows to confirmed stays.
    """
    await get_team_request_for_actor(db, actor, team_request_id)
    return await accommodation_service.list_team_accommodations(
        db,
        team_request_id,
        check_in_status=check_in_status,
        check_out_status=check_out_status,
    )


@router.get("/mine", response_model=list[AccommodationResponse])
async def list_my_accommodations(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await accommodation_service.list_for_player(db, actor)


@router.get("/hotel-manager/pending", response_model=list[AccommodationResponse])
async def list_pending_for_my_hotels(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Assignments at the caller's hotels waiting for approval or rejection."""
    return await accommodation_service.list_pending_for_hotel_manager(db, actor)


@router.get("/rejected", response_model=list[AccommodationResponse])
async def list_rejected(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Requests turned down by a hotel that need to be reassigned."""
    return await accommodation_service.list_rejected(db, actor)


# ---------------------------------------------------------------------------
# Workflow transitions
# ---------------------------------------------------------------------------


@router.post("/{accommodation_id}/assign", response_model=AccommodationResponse)
async def assign_hotel(
    accommodation_id: int,
    assignment: AssignHotelRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Assign a hotel and room category.

    Manual: pass hotel_id and room_category_id.
    Automatic: pass cluster_id with automatic=true and the least occupied
    room category of an approved hotel in the cluster is reserved.
    Returns 409 when no room is left.
    """
    accommodation = await accommodation_service.assign_hotel(
        db,
        actor,
        accommodation_id,
        hotel_id=assignment.hotel_id,
        room_category_id=assignment.room_category_id,
        cluster_id=assignment.cluster_id,
        automatic=assignment.automatic,
        check_in_date=assignment.check_in_date,
        check_out_date=assignment.check_out_date,
    )
    await invalidate_after_commit(db)
    return accommodation


@router.patch("/{accommodation_id}/respond", response_model=AccommodationResponse)
async def respond_to_assignment(
    accommodation_id: int,
    response: RespondRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Hotel manager approves (confirms) or rejects an assignment."""
    accommodation = await accommodation_service.respond_to_assignment(
        db,
        actor,
        accommodation_id,
        approve=response.approve,
        reason=response.reason,
    )
    await invalidate_after_commit(db)
    return accommodation


@router.post("/{accommodation_id}/cancel", response_model=AccommodationResponse)
async def cancel_accommodation(
    accommodation_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    accommodation = await accommodation_service.cancel_accommodation(db, actor, accommodation_id)
    await invalidate_after_commit(db)
    return accommodation


@router.post("/{accommodation_id}/check-in", response_model=AccommodationResponse)
async def check_in(
    accommodation_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    accommodation = await stay_service.check_in(db, actor, accommodation_id)
    await invalidate_after_commit(db)
    return accommodation


@router.post("/{accommodation_id}/check-out", response_model=AccommodationResponse)
async def check_out(
    accommodation_id: int,
    request: Optional[CheckOutRequest] = None,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Check out a stay. The QR code is rotated and stops working."""
    early = request.is_early_checkout if request else False
    accommodation = await stay_service.check_out(db, actor, accommodation_id, early)
    await invalidate_after_commit(db)
    return accommodation


@router.post("/team/{team_request_id}/bulk-check-in", response_model=BulkStayResponse)
async def bulk_check_in(
    team_request_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Check in every confirmed member of a team. Reports per member."""
    results = await stay_service.bulk_check_in(db, actor, team_request_id)
    await invalidate_after_commit(db)
    succeeded = sum(1 for r in results if r["outcome"] == "ok")
    return BulkStayResponse(
        message=f"Checked in {succeeded} of {len(results)} members",
        succeeded=succeeded,
        results=results,
    )


@router.post("/team/{team_request_id}/bulk-check-out", response_model=BulkStayResponse)
async def bulk_check_out(
    team_request_id: int,
    request: Optional[CheckOutRequest] = None,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    early = request.is_early_checkout if request else False
    results = await stay_service.bulk_check_out(db, actor, team_request_id, early)
    await invalidate_after_commit(db)
    succeeded = sum(1 for r in results if r["outcome"] == "ok")
    return BulkStayResponse(
        message=f"Checked out {succeeded} of {len(results)} members",
        succeeded=succeeded,
        results=results,
    )


@router.post("/qr/verify", response_model=QrVerifyResponse)
async def verify_qr(
    request: QrVerifyRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Front-desk scan: 403 unless the token belongs to an active confirmed stay."""
    require_role(actor, EVENT_MANAGER_ROLES | {HOTEL_MANAGER}, "verify QR codes")
    accommodation = await verify_qr_token(db, request.qr_code)
    return QrVerifyResponse(
        valid=True,
        accommodation_id=accommodation.id,
        hotel_id=accommodation.hotel_id,
        confirmation_code=accommodation.confirmation_code,
        check_in_status=accommodation.check_in_status,
    )
