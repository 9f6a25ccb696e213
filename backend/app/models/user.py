"""
User model with secure password storage and a workflow role.
"""

from sqlalchemy import Column, Integer, String, Boolean, CheckConstraint

from app.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(50), nullable=False, index=True)
    organization = Column(String(255), nullable=False)
    mobile_number = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('state_admin_manager', 'lead_admin', 'admin', 'event_manager', "
            "'team_manager', 'player', 'hotel_manager')",
            name="check_user_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
