"""
Dashboard read models for event managers.

The summary is a handful of COUNT queries over accommodation_requests and
is cached in Redis under "dashboard:summary" until the next workflow
transition invalidates it.
"""

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.accommodation import (
    AccommodationRequest,
    CANCELLED,
    CONFIRMED,
    HOTEL_ASSIGNED,
    HOTEL_REJECTED,
)
from app.models.team import TeamRequest
from app.core.logging import get_logger
from app.core.security import Actor, EVENT_MANAGER_ROLES, require_role
from app.services.cache_service import get_cached_view, set_cached_view

logger = get_logger(__name__)

SUMMARY_VIEW = "summary"


async def list_incomplete_teams(db: AsyncSession, actor: Actor) -> list[dict]:
    """
    Approved teams where at least one live (not cancelled) request is not
    confirmed yet.
    """
    require_role(actor, EVENT_MANAGER_ROLES, "view incomplete teams")

    confirmed = func.sum(case((AccommodationRequest.status == CONFIRMED, 1), else_=0))
    result = await db.execute(
        select(
            TeamRequest.id,
            TeamRequest.team_name,
            func.count(AccommodationRequest.id).label("total_requests"),
            confirmed.label("confirmed"),
        )
        .join(AccommodationRequest, AccommodationRequest.team_request_id == TeamRequest.id)
        .where(
            TeamRequest.status == "approved",
            AccommodationRequest.status != CANCELLED,
        )
        .group_by(TeamRequest.id, TeamRequest.team_name)
        .having(func.count(AccommodationRequest.id) > confirmed)
        .order_by(TeamRequest.id)
    )
    return [
        {
            "team_request_id": row.id,
            "team_name": row.team_name,
            "total_requests": row.total_requests,
            "confirmed": row.confirmed or 0,
            "outstanding": row.total_requests - (row.confirmed or 0),
        }
        for row in result.all()
    ]


async def get_summary(db: AsyncSession, actor: Actor) -> dict:
    """Counts per status plus the queues event and hotel managers work from."""
    require_role(actor, EVENT_MANAGER_ROLES, "view the dashboard")

    cached = await get_cached_view(SUMMARY_VIEW)
    if cached:
        logger.info("dashboard_summary_cache_hit")
        cached["cached"] = True
        return cached

    result = await db.execute(
        select(AccommodationRequest.status, func.count(AccommodationRequest.id))
        .group_by(AccommodationRequest.status)
    )
    status_counts = {row[0]: row[1] for row in result.all()}

    summary = {
        "status_counts": status_counts,
        "awaiting_hotel_response": status_counts.get(HOTEL_ASSIGNED, 0),
        "needs_reassignment": status_counts.get(HOTEL_REJECTED, 0),
        "incomplete_teams": len(await list_incomplete_teams(db, actor)),
        "cached": False,
    }

    await set_cached_view(SUMMARY_VIEW, summary)
    return summary
