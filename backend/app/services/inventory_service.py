"""
Room availability accounting.

CONCURRENCY STRATEGY: Conditional Decrement
===========================================

Problem:
  Two event managers assign the last room of a category at the same time.
  Both read available_rooms=1, both decrement, both succeed.
  Result: Overbooking.

Solution:
  The decrement carries its own guard:

    UPDATE room_categories SET available_rooms = available_rooms - 1
    WHERE id = :room_category_id AND available_rooms > 0

  If rows_affected == 0 the room was taken by someone else. Nothing is
  retried against the same row: the caller either fails with
  NoAvailability (manual) or moves on to the next candidate (automatic).
  The CHECK constraint available_rooms >= 0 is the final safety net.

  Restores are guarded the same way so a room can never exceed its
  total_rooms.
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hotel import RoomCategory
from app.core.metrics import record_room_reservation
from app.core.logging import get_logger

logger = get_logger(__name__)


async def reserve_room(db: AsyncSession, room_category_id: int) -> bool:
    """Take one room out of the category. Returns False if none were left."""
    result = await db.execute(
        update(RoomCategory)
        .where(
            RoomCategory.id == room_category_id,
            RoomCategory.available_rooms > 0,
        )
        .values(available_rooms=RoomCategory.available_rooms - 1)
        .execution_options(synchronize_session=False)
    )
    reserved = result.rowcount == 1
    record_room_reservation(reserved)

    if not reserved:
        logger.info("room_reservation_conflict", room_category_id=room_category_id)
    return reserved


async def release_room(db: AsyncSession, room_category_id: int) -> bool:
    """Give one room back to the category."""
    result = await db.execute(
        update(RoomCategory)
        .where(
            RoomCategory.id == room_category_id,
            RoomCategory.available_rooms < RoomCategory.total_rooms,
        )
        .values(available_rooms=RoomCategory.available_rooms + 1)
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount == 1

    if not released:
        logger.warning("room_release_skipped", room_category_id=room_category_id)
    return released
