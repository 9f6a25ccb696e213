"""
Automatic hotel/room selection from a cluster.

Candidate set:
  1. Hotels in the cluster whose approval status is 'approved'
  2. Their room categories with available_rooms > 0

The configured AssignmentStrategy orders the candidates. Each one is then
reserved with the conditional decrement from inventory_service; a
candidate that was emptied between the read and the reserve is skipped in
favour of the next one. Only when every candidate is exhausted does the
assignment fail with NoAvailability.

The cluster's max_radius is not consulted.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hotel import Hotel, HotelCluster, RoomCategory
from app.core.exceptions import NoAvailability, NotFound
from app.core.logging import get_logger
from app.services.interfaces.assignment import AssignmentStrategy, RoomCandidate
from app.services.inventory_service import reserve_room
from app.services.strategy_factory import get_strategy

logger = get_logger(__name__)


async def find_candidates(db: AsyncSession, cluster_id: int) -> list[RoomCandidate]:
    """Approved hotels' room categories in the cluster that have a free room."""
    cluster = await db.get(HotelCluster, cluster_id)
    if cluster is None:
        raise NotFound(f"Hotel cluster {cluster_id} not found")

    result = await db.execute(
        select(RoomCategory, Hotel)
        .join(Hotel, RoomCategory.hotel_id == Hotel.id)
        .where(
            Hotel.cluster_id == cluster_id,
            Hotel.approved == "approved",
            RoomCategory.available_rooms > 0,
        )
        .execution_options(populate_existing=True)
    )
    return [
        RoomCandidate(
            hotel_id=hotel.id,
            room_category_id=room.id,
            available_rooms=room.available_rooms,
            total_rooms=room.total_rooms,
            price_per_night=room.price_per_night,
        )
        for room, hotel in result.all()
    ]


async def reserve_from_cluster(
    db: AsyncSession,
    cluster_id: int,
    strategy: Optional[AssignmentStrategy] = None,
) -> tuple[Hotel, RoomCategory]:
    """
    Pick and reserve one room in the cluster.
    Returns the hotel and room category that now hold the reservation.
    """
    strategy = strategy or get_strategy()
    candidates = strategy.rank(await find_candidates(db, cluster_id))

    for candidate in candidates:
        if await reserve_room(db, candidate.room_category_id):
            hotel = await db.get(Hotel, candidate.hotel_id)
            room = await db.get(RoomCategory, candidate.room_category_id, populate_existing=True)
            logger.info(
                "automatic_assignment_selected",
                cluster_id=cluster_id,
                hotel_id=candidate.hotel_id,
                room_category_id=candidate.room_category_id,
                strategy=strategy.name,
                candidates=len(candidates),
            )
            return hotel, room

        logger.info(
            "automatic_assignment_candidate_taken",
            cluster_id=cluster_id,
            room_category_id=candidate.room_category_id,
        )

    logger.warning("automatic_assignment_no_availability", cluster_id=cluster_id)
    raise NoAvailability(f"No approved hotel in cluster {cluster_id} has a room available")
