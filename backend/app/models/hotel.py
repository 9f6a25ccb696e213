"""
Hotel inventory: clusters, hotels and room categories.

Key design decisions:
- `available_rooms` is denormalized on the room category and only ever
  changed through conditional UPDATEs (see inventory_service)
- A cluster is a weak grouping: deleting it clears `hotels.cluster_id`
  instead of cascading
- `max_radius` is stored for the UI but not used for matching
- `contact_info` is a structured value; JSON only at the column
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Text, Numeric, ForeignKey, JSON,
    CheckConstraint, Index,
)

from app.db.base import Base, TimestampMixin


class HotelCluster(Base, TimestampMixin):
    __tablename__ = "hotel_clusters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    max_radius = Column(Numeric(6, 2), nullable=True)  # km
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    def __repr__(self) -> str:
        return f"<HotelCluster(id={self.id}, name={self.name})>"


class Hotel(Base, TimestampMixin):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    proximity_to_venue = Column(String(255), nullable=True)
    cluster_id = Column(
        Integer, ForeignKey("hotel_clusters.id", ondelete="SET NULL"), nullable=True, index=True
    )
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approved = Column(String(20), nullable=False, default="pending")  # pending, approved, rejected
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    auto_approve_bookings = Column(Boolean, nullable=False, default=False)
    contact_info = Column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "approved IN ('pending', 'approved', 'rejected')",
            name="check_hotel_approved",
        ),
        # Candidate lookup for automatic assignment
        Index("ix_hotels_cluster_approved", "cluster_id", "approved"),
    )

    def __repr__(self) -> str:
        return f"<Hotel(id={self.id}, name={self.name}, approved={self.approved})>"


class RoomCategory(Base, TimestampMixin):
    __tablename__ = "room_categories"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    total_rooms = Column(Integer, nullable=False)
    available_rooms = Column(Integer, nullable=False)
    max_occupancy = Column(Integer, nullable=False, default=2)

    __table_args__ = (
        # The conditional decrement relies on this as the last line of defence
        CheckConstraint("available_rooms >= 0", name="check_available_rooms_non_negative"),
        CheckConstraint("total_rooms > 0", name="check_total_rooms_positive"),
        CheckConstraint("available_rooms <= total_rooms", name="check_available_lte_total_rooms"),
    )

    @property
    def occupancy_ratio(self) -> float:
        return 1 - (self.available_rooms / self.total_rooms)

    def __repr__(self) -> str:
        return (
            f"<RoomCategory(id={self.id}, hotel={self.hotel_id}, "
            f"available={self.available_rooms}/{self.total_rooms})>"
        )
