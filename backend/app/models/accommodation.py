"""
Accommodation request: one per team member who needs a room.

Key design decisions:
- `status` and `check_in_status`/`check_out_status` are independent axes;
  the stay sub-state only moves once the request is confirmed
- `hotel_id` and `room_category_id` are written and cleared together,
  enforced by a CHECK constraint
- `confirmation_code` is unique and written once, at confirmation
- `version` is bumped by every transition; transitions are conditional
  UPDATEs on the expected status so a duplicate response loses
- Rows are never deleted; the timestamp columns are the audit trail
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Text, DateTime, ForeignKey,
    CheckConstraint, Index,
)

from app.db.base import Base, TimestampMixin

PENDING = "pending"
HOTEL_ASSIGNED = "hotel_assigned"
HOTEL_APPROVED = "hotel_approved"
HOTEL_REJECTED = "hotel_rejected"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"

ASSIGNABLE_STATUSES = (PENDING, HOTEL_REJECTED)

CHECK_IN_PENDING = "pending"
CHECKED_IN = "checked_in"
CHECK_OUT_PENDING = "pending"
CHECKED_OUT = "checked_out"


class AccommodationRequest(Base, TimestampMixin):
    __tablename__ = "accommodation_requests"

    id = Column(Integer, primary_key=True, index=True)
    team_request_id = Column(Integer, ForeignKey("team_requests.id"), nullable=False, index=True)
    team_member_id = Column(Integer, ForeignKey("team_members.id"), nullable=False, unique=True)

    cluster_id = Column(
        Integer, ForeignKey("hotel_clusters.id", ondelete="SET NULL"), nullable=True
    )
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=True, index=True)
    room_category_id = Column(Integer, ForeignKey("room_categories.id"), nullable=True)
    check_in_date = Column(DateTime(timezone=True), nullable=True)
    check_out_date = Column(DateTime(timezone=True), nullable=True)
    accommodation_preferences = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=PENDING)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    hotel_response_reason = Column(String(500), nullable=True)
    hotel_responded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    hotel_responded_at = Column(DateTime(timezone=True), nullable=True)

    confirmation_code = Column(String(16), nullable=True, unique=True)
    qr_code = Column(String(64), nullable=True, unique=True)

    check_in_status = Column(String(20), nullable=False, default=CHECK_IN_PENDING)
    check_out_status = Column(String(20), nullable=False, default=CHECK_OUT_PENDING)
    actual_check_in_time = Column(DateTime(timezone=True), nullable=True)
    actual_check_out_time = Column(DateTime(timezone=True), nullable=True)
    is_early_checkout = Column(Boolean, nullable=False, default=False)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'hotel_assigned', 'hotel_approved', "
            "'hotel_rejected', 'confirmed', 'cancelled')",
            name="check_accommodation_status",
        ),
        CheckConstraint(
            "check_in_status IN ('pending', 'checked_in')",
            name="check_accommodation_check_in_status",
        ),
        CheckConstraint(
            "check_out_status IN ('pending', 'checked_out')",
            name="check_accommodation_check_out_status",
        ),
        CheckConstraint(
            "(hotel_id IS NULL) = (room_category_id IS NULL)",
            name="check_hotel_room_paired",
        ),
        # Hotel manager inbox: requests at my hotels awaiting a response
        Index("ix_accommodation_hotel_status", "hotel_id", "status"),
        Index("ix_accommodation_team_status", "team_request_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<AccommodationRequest(id={self.id}, member={self.team_member_id}, "
            f"status={self.status}, hotel={self.hotel_id})>"
        )
