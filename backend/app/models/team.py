"""
Team roster models: a team request groups the members a team manager
submits for a tournament.

Members are immutable after submission apart from the optional link to a
player account, which is what lets a player act on their own stay.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, Text, DateTime, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class TeamRequest(Base, TimestampMixin):
    __tablename__ = "team_requests"

    id = Column(Integer, primary_key=True, index=True)
    team_name = Column(String(255), nullable=False)
    sport = Column(String(100), nullable=False)
    # Reference into the tournament catalog, which lives outside this service
    tournament_id = Column(Integer, nullable=True, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, rejected
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    check_in_date = Column(DateTime(timezone=True), nullable=True)
    check_out_date = Column(DateTime(timezone=True), nullable=True)

    members = relationship(
        "TeamMember",
        back_populates="team_request",
        lazy="selectin",
        order_by="TeamMember.id",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="check_team_request_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<TeamRequest(id={self.id}, team={self.team_name}, status={self.status})>"


class TeamMember(Base, TimestampMixin):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_request_id = Column(Integer, ForeignKey("team_requests.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    position = Column(String(100), nullable=True)
    requires_accommodation = Column(Boolean, nullable=False, default=False)
    accommodation_preferences = Column(Text, nullable=True)

    team_request = relationship("TeamRequest", back_populates="members")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<TeamMember(id={self.id}, team_request={self.team_request_id}, name={self.full_name})>"
