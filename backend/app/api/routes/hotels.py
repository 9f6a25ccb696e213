"""
Hotel inventory endpoints: clusters, hotels and room categories.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.hotel import (
    ClusterCreate,
    ClusterResponse,
    HotelCreate,
    HotelResponse,
    HotelRejection,
    HotelClusterAssign,
    RoomCategoryCreate,
    RoomCategoryUpdate,
    RoomCategoryResponse,
)
from app.services import hotel_service
from app.core.security import Actor, get_current_actor

clusters_router = APIRouter(prefix="/clusters", tags=["Hotel Clusters"])
router = APIRouter(prefix="/hotels", tags=["Hotels"])


@clusters_router.post("/", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED)
async def create_cluster(
    cluster_data: ClusterCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.create_cluster(db, actor, cluster_data)


@clusters_router.get("/", response_model=list[ClusterResponse])
async def list_clusters(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.list_clusters(db)


@clusters_router.delete("/{cluster_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cluster(
    cluster_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Delete a cluster. Its hotels are kept and left without a cluster."""
    await hotel_service.delete_cluster(db, actor, cluster_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/", response_model=HotelResponse, status_code=status.HTTP_201_CREATED)
async def register_hotel(
    hotel_data: HotelCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Register a hotel. It takes no assignments until an event manager approves it."""
    return await hotel_service.create_hotel(db, actor, hotel_data)


@router.get("/", response_model=list[HotelResponse])
async def list_hotels(
    cluster_id: Optional[int] = Query(None),
    approved: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Hotels, optionally filtered by cluster and approval status."""
    return await hotel_service.list_hotels(db, cluster_id=cluster_id, approved=approved)


@router.get("/pending", response_model=list[HotelResponse])
async def list_pending_hotels(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Hotels waiting for event-manager approval, oldest first."""
    return await hotel_service.list_pending_hotels(db, actor)


@router.get("/mine", response_model=list[HotelResponse])
async def list_my_hotels(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.list_my_hotels(db, actor)


@router.get("/{hotel_id}", response_model=HotelResponse)
async def get_hotel(
    hotel_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.get_hotel(db, hotel_id)


@router.patch("/{hotel_id}/approve", response_model=HotelResponse)
async def approve_hotel(
    hotel_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.approve_hotel(db, actor, hotel_id)


@router.patch("/{hotel_id}/reject", response_model=HotelResponse)
async def reject_hotel(
    hotel_id: int,
    rejection: HotelRejection,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.reject_hotel(db, actor, hotel_id, rejection.reason)


@router.put("/{hotel_id}/cluster", response_model=HotelResponse)
async def set_hotel_cluster(
    hotel_id: int,
    assignment: HotelClusterAssign,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await hotel_service.assign_hotel_to_cluster(db, actor, hotel_id, assignment.cluster_id)


@router.post(
    "/{hotel_id}/room-categories",
    response_model=RoomCategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_room_category(
    hotel_id: int,
    room_data: RoomCategoryCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Add a room category. Availability defaults to the total number of rooms."""
    return await hotel_service.create_room_category(db, actor, hotel_id, room_data)


@router.get("/{hotel_id}/room-categories", response_model=list[RoomCategoryResponse])
async def list_room_categories(
    hotel_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Room categories with live availability. Not cached."""
    return await hotel_service.list_room_categories(db, hotel_id)


@router.patch(
    "/{hotel_id}/room-categories/{room_category_id}",
    response_model=RoomCategoryResponse,
)
async def update_room_category(
    hotel_id: int,
    room_category_id: int,
    room_data: RoomCategoryUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Edit a room category. Resizing keeps rooms already assigned."""
    return await hotel_service.update_room_category(db, actor, hotel_id, room_category_id, room_data)
