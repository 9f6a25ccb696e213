"""
Dashboard endpoints with Redis caching on the summary.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.dashboard import DashboardSummary, IncompleteTeam
from app.services.dashboard_service import get_summary, list_incomplete_teams
from app.core.security import Actor, get_current_actor

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Request counts per status and the size of each work queue.
    Cached in Redis until the next workflow transition.
    """
    return DashboardSummary(**await get_summary(db, actor))


@router.get("/incomplete-teams", response_model=list[IncompleteTeam])
async def incomplete_teams(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Approved teams with at least one member not yet confirmed."""
    return await list_incomplete_teams(db, actor)
