"""
Hotel inventory service: clusters, hotels and room categories.

Hotels are registered by their hotel manager and only take part in
assignment once an event manager approves them. Room availability is set
here at creation and shifted when a category is resized; otherwise only
inventory_service moves it.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hotel import Hotel, HotelCluster, RoomCategory
from app.models.accommodation import AccommodationRequest
from app.schemas.hotel import ClusterCreate, HotelCreate, RoomCategoryCreate, RoomCategoryUpdate
from app.core.exceptions import InvalidAssignment, InvalidStateTransition, NotFound, Unauthorized
from app.core.logging import get_logger
from app.core.security import Actor, EVENT_MANAGER_ROLES, HOTEL_MANAGER, require_role

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------


async def create_cluster(db: AsyncSession, actor: Actor, cluster_data: ClusterCreate) -> HotelCluster:
    require_role(actor, EVENT_MANAGER_ROLES, "create hotel clusters")

    cluster = HotelCluster(
        name=cluster_data.name,
        city=cluster_data.city,
        description=cluster_data.description,
        max_radius=cluster_data.max_radius,
        created_by=actor.user_id,
    )
    db.add(cluster)
    await db.flush()
    await db.refresh(cluster)

    logger.info("cluster_created", cluster_id=cluster.id, name=cluster.name, actor_id=actor.user_id)
    return cluster


async def get_cluster(db: AsyncSession, cluster_id: int) -> HotelCluster:
    cluster = await db.get(HotelCluster, cluster_id)
    if not cluster:
        raise NotFound(f"Hotel cluster {cluster_id} not found")
    return cluster


async def list_clusters(db: AsyncSession) -> list[HotelCluster]:
    result = await db.execute(select(HotelCluster).order_by(HotelCluster.name, HotelCluster.id))
    return list(result.scalars().all())


async def delete_cluster(db: AsyncSession, actor: Actor, cluster_id: int) -> None:
    """
    Delete a cluster. Its hotels stay, they just no longer belong to a
    cluster; accommodation requests forget which cluster they came from.
    """
    require_role(actor, EVENT_MANAGER_ROLES, "delete hotel clusters")
    cluster = await get_cluster(db, cluster_id)

    # Cleared explicitly: SQLite does not enforce ON DELETE SET NULL by default
    hotels = await db.execute(
        update(Hotel)
        .where(Hotel.cluster_id == cluster_id)
        .values(cluster_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(AccommodationRequest)
        .where(AccommodationRequest.cluster_id == cluster_id)
        .values(cluster_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(cluster)
    await db.flush()

    logger.info(
        "cluster_deleted",
        cluster_id=cluster_id,
        hotels_detached=hotels.rowcount,
        actor_id=actor.user_id,
    )


# ---------------------------------------------------------------------------
# Hotels
# ---------------------------------------------------------------------------


async def create_hotel(db: AsyncSession, actor: Actor, hotel_data: HotelCreate) -> Hotel:
    """Register a hotel owned by the acting hotel manager. Starts pending approval."""
    require_role(actor, HOTEL_MANAGER, "register hotels")

    if hotel_data.cluster_id is not None:
        await get_cluster(db, hotel_data.cluster_id)

    hotel = Hotel(
        name=hotel_data.name,
        address=hotel_data.address,
        proximity_to_venue=hotel_data.proximity_to_venue,
        cluster_id=hotel_data.cluster_id,
        manager_id=actor.user_id,
        approved="pending",
        auto_approve_bookings=hotel_data.auto_approve_bookings,
        contact_info=(
            hotel_data.contact_info.model_dump(mode="json", exclude_none=True)
            if hotel_data.contact_info
            else None
        ),
    )
    db.add(hotel)
    await db.flush()
    await db.refresh(hotel)

    logger.info("hotel_created", hotel_id=hotel.id, name=hotel.name, manager_id=actor.user_id)
    return hotel


async def get_hotel(db: AsyncSession, hotel_id: int) -> Hotel:
    """Get a single hotel by ID."""
    result = await db.execute(
        select(Hotel).where(Hotel.id == hotel_id).execution_options(populate_existing=True)
    )
    hotel = result.scalar_one_or_none()

    if not hotel:
        raise NotFound(f"Hotel {hotel_id} not found")
    return hotel


async def list_hotels(
    db: AsyncSession,
    *,
    cluster_id: Optional[int] = None,
    approved: Optional[str] = None,
) -> list[Hotel]:
    """All hotels, optionally narrowed to one cluster and/or approval status."""
    query = select(Hotel)
    if cluster_id is not None:
        query = query.where(Hotel.cluster_id == cluster_id)
    if approved is not None:
        query = query.where(Hotel.approved == approved)
    result = await db.execute(query.order_by(Hotel.name, Hotel.id))
    return list(result.scalars().all())


async def list_pending_hotels(db: AsyncSession, actor: Actor) -> list[Hotel]:
    require_role(actor, EVENT_MANAGER_ROLES, "review hotels")
    result = await db.execute(
        select(Hotel)
        .where(Hotel.approved == "pending")
        .order_by(Hotel.created_at.asc(), Hotel.id.asc())
    )
    return list(result.scalars().all())


async def list_my_hotels(db: AsyncSession, actor: Actor) -> list[Hotel]:
    require_role(actor, HOTEL_MANAGER, "list managed hotels")
    result = await db.execute(
        select(Hotel).where(Hotel.manager_id == actor.user_id).order_by(Hotel.name, Hotel.id)
    )
    return list(result.scalars().all())


async def _review_hotel(
    db: AsyncSession,
    actor: Actor,
    hotel_id: int,
    decision: str,
    reason: Optional[str] = None,
) -> Hotel:
    require_role(actor, EVENT_MANAGER_ROLES, "review hotels")
    hotel = await get_hotel(db, hotel_id)

    if hotel.approved != "pending":
        raise InvalidStateTransition(f"Hotel {hotel_id} is already {hotel.approved}")

    hotel.approved = decision
    hotel.approved_by = actor.user_id
    hotel.rejection_reason = reason
    await db.flush()
    await db.refresh(hotel)

    logger.info(f"hotel_{decision}", hotel_id=hotel.id, actor_id=actor.user_id)
    return hotel


async def approve_hotel(db: AsyncSession, actor: Actor, hotel_id: int) -> Hotel:
    return await _review_hotel(db, actor, hotel_id, "approved")


async def reject_hotel(db: AsyncSession, actor: Actor, hotel_id: int, reason: str) -> Hotel:
    return await _review_hotel(db, actor, hotel_id, "rejected", reason)


async def assign_hotel_to_cluster(
    db: AsyncSession,
    actor: Actor,
    hotel_id: int,
    cluster_id: Optional[int],
) -> Hotel:
    """Move a hotel into a cluster, or out of any cluster with None."""
    require_role(actor, EVENT_MANAGER_ROLES, "group hotels into clusters")
    hotel = await get_hotel(db, hotel_id)
    if cluster_id is not None:
        await get_cluster(db, cluster_id)

    previous = hotel.cluster_id
    hotel.cluster_id = cluster_id
    await db.flush()
    await db.refresh(hotel)

    logger.info(
        "hotel_cluster_changed",
        hotel_id=hotel.id,
        from_cluster=previous,
        to_cluster=cluster_id,
        actor_id=actor.user_id,
    )
    return hotel


# ---------------------------------------------------------------------------
# Room categories
# ---------------------------------------------------------------------------


async def create_room_category(
    db: AsyncSession,
    actor: Actor,
    hotel_id: int,
    room_data: RoomCategoryCreate,
) -> RoomCategory:
    """Add a room category to one of the actor's hotels."""
    require_role(actor, HOTEL_MANAGER, "add room categories")
    hotel = await get_hotel(db, hotel_id)
    if hotel.manager_id != actor.user_id:
        raise Unauthorized(f"Hotel {hotel_id} is not managed by you")

    available = room_data.available_rooms
    room = RoomCategory(
        hotel_id=hotel.id,
        name=room_data.name,
        price_per_night=room_data.price_per_night,
        total_rooms=room_data.total_rooms,
        available_rooms=room_data.total_rooms if available is None else available,
        max_occupancy=room_data.max_occupancy,
    )
    db.add(room)
    await db.flush()
    await db.refresh(room)

    logger.info(
        "room_category_created",
        room_category_id=room.id,
        hotel_id=hotel.id,
        total_rooms=room.total_rooms,
        available_rooms=room.available_rooms,
    )
    return room


async def get_room_category(db: AsyncSession, room_category_id: int) -> RoomCategory:
    room = await db.get(RoomCategory, room_category_id, populate_existing=True)
    if not room:
        raise NotFound(f"Room category {room_category_id} not found")
    return room


async def list_room_categories(db: AsyncSession, hotel_id: int) -> list[RoomCategory]:
    """Room categories of a hotel with their current availability."""
    await get_hotel(db, hotel_id)
    result = await db.execute(
        select(RoomCategory)
        .where(RoomCategory.hotel_id == hotel_id)
        .order_by(RoomCategory.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def update_room_category(
    db: AsyncSession,
    actor: Actor,
    hotel_id: int,
    room_category_id: int,
    room_data: RoomCategoryUpdate,
) -> RoomCategory:
    """
    Edit a room category of one of the actor's hotels.

    Resizing keeps the rooms already handed out: availability moves by the
    same amount as the total, and the total cannot drop below the number
    of reserved rooms. The resize is one conditional UPDATE so it cannot
    interleave with a concurrent reservation.
    """
    require_role(actor, HOTEL_MANAGER, "edit room categories")
    hotel = await get_hotel(db, hotel_id)
    if hotel.manager_id != actor.user_id:
        raise Unauthorized(f"Hotel {hotel_id} is not managed by you")

    room = await get_room_category(db, room_category_id)
    if room.hotel_id != hotel.id:
        raise NotFound(f"Room category {room_category_id} not found in hotel {hotel_id}")

    changes = room_data.model_dump(exclude_unset=True, exclude={"total_rooms"})
    values = {key: value for key, value in changes.items() if value is not None}
    guards = []
    if room_data.total_rooms is not None:
        new_total = room_data.total_rooms
        values["total_rooms"] = new_total
        values["available_rooms"] = RoomCategory.available_rooms + (new_total - RoomCategory.total_rooms)
        guards.append(RoomCategory.total_rooms - RoomCategory.available_rooms <= new_total)

    if values:
        result = await db.execute(
            update(RoomCategory)
            .where(RoomCategory.id == room.id, *guards)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.refresh(room)
            raise InvalidAssignment(
                f"Room category {room_category_id} has "
                f"{room.total_rooms - room.available_rooms} rooms assigned; "
                f"total_rooms cannot drop to {room_data.total_rooms}"
            )
        await db.refresh(room)

    logger.info(
        "room_category_updated",
        room_category_id=room.id,
        hotel_id=hotel.id,
        fields=sorted(values),
        total_rooms=room.total_rooms,
        available_rooms=room.available_rooms,
        actor_id=actor.user_id,
    )
    return room
