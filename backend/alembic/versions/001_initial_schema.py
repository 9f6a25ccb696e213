"""Initial schema: users, teams, hotel inventory and accommodation requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("organization", sa.String(255), nullable=False),
        sa.Column("mobile_number", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('state_admin_manager', 'lead_admin', 'admin', 'event_manager', "
            "'team_manager', 'player', 'hotel_manager')",
            name="check_user_role",
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # Team requests and members
    op.create_table(
        "team_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_name", sa.String(255), nullable=False),
        sa.Column("sport", sa.String(100), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=True),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("check_in_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="check_team_request_status"),
    )
    op.create_index("ix_team_requests_id", "team_requests", ["id"])
    op.create_index("ix_team_requests_tournament_id", "team_requests", ["tournament_id"])
    op.create_index("ix_team_requests_manager_id", "team_requests", ["manager_id"])

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_request_id", sa.Integer(), sa.ForeignKey("team_requests.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("requires_accommodation", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("accommodation_preferences", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_team_members_id", "team_members", ["id"])
    op.create_index("ix_team_members_team_request_id", "team_members", ["team_request_id"])
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    # Hotel inventory
    op.create_table(
        "hotel_clusters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("max_radius", sa.Numeric(6, 2), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_hotel_clusters_id", "hotel_clusters", ["id"])

    op.create_table(
        "hotels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("proximity_to_venue", sa.String(255), nullable=True),
        sa.Column(
            "cluster_id", sa.Integer(),
            sa.ForeignKey("hotel_clusters.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("approved", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("auto_approve_bookings", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("contact_info", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("approved IN ('pending', 'approved', 'rejected')", name="check_hotel_approved"),
    )
    op.create_index("ix_hotels_id", "hotels", ["id"])
    op.create_index("ix_hotels_cluster_id", "hotels", ["cluster_id"])
    op.create_index("ix_hotels_manager_id", "hotels", ["manager_id"])
    # Candidate lookup for automatic assignment:
    # WHERE cluster_id = :cluster AND approved = 'approved'
    op.create_index("ix_hotels_cluster_approved", "hotels", ["cluster_id", "approved"])

    op.create_table(
        "room_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hotel_id", sa.Integer(), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_rooms", sa.Integer(), nullable=False),
        sa.Column("available_rooms", sa.Integer(), nullable=False),
        sa.Column("max_occupancy", sa.Integer(), nullable=False, server_default=sa.text("2")),
        *_timestamps(),
        sa.CheckConstraint("available_rooms >= 0", name="check_available_rooms_non_negative"),
        sa.CheckConstraint("total_rooms > 0", name="check_total_rooms_positive"),
        sa.CheckConstraint("available_rooms <= total_rooms", name="check_available_lte_total_rooms"),
    )
    op.create_index("ix_room_categories_id", "room_categories", ["id"])
    op.create_index("ix_room_categories_hotel_id", "room_categories", ["hotel_id"])

    # Accommodation requests
    op.create_table(
        "accommodation_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_request_id", sa.Integer(), sa.ForeignKey("team_requests.id"), nullable=False),
        sa.Column("team_member_id", sa.Integer(), sa.ForeignKey("team_members.id"), nullable=False),
        sa.Column(
            "cluster_id", sa.Integer(),
            sa.ForeignKey("hotel_clusters.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("hotel_id", sa.Integer(), sa.ForeignKey("hotels.id"), nullable=True),
        sa.Column("room_category_id", sa.Integer(), sa.ForeignKey("room_categories.id"), nullable=True),
        sa.Column("check_in_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accommodation_preferences", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hotel_response_reason", sa.String(500), nullable=True),
        sa.Column("hotel_responded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("hotel_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmation_code", sa.String(16), nullable=True),
        sa.Column("qr_code", sa.String(64), nullable=True),
        sa.Column("check_in_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("check_out_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("actual_check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_early_checkout", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        # One request per member
        sa.UniqueConstraint("team_member_id", name="uq_accommodation_team_member"),
        sa.UniqueConstraint("confirmation_code", name="uq_accommodation_confirmation_code"),
        sa.UniqueConstraint("qr_code", name="uq_accommodation_qr_code"),
        sa.CheckConstraint(
            "status IN ('pending', 'hotel_assigned', 'hotel_approved', "
            "'hotel_rejected', 'confirmed', 'cancelled')",
            name="check_accommodation_status",
        ),
        sa.CheckConstraint("check_in_status IN ('pending', 'checked_in')", name="check_accommodation_check_in_status"),
        sa.CheckConstraint(
            "check_out_status IN ('pending', 'checked_out')", name="check_accommodation_check_out_status"
        ),
        sa.CheckConstraint("(hotel_id IS NULL) = (room_category_id IS NULL)", name="check_hotel_room_paired"),
    )
    op.create_index("ix_accommodation_requests_id", "accommodation_requests", ["id"])
    op.create_index("ix_accommodation_requests_team_request_id", "accommodation_requests", ["team_request_id"])
    op.create_index("ix_accommodation_requests_hotel_id", "accommodation_requests", ["hotel_id"])
    # Hotel manager inbox: WHERE hotel_id IN (...) AND status = 'hotel_assigned'
    op.create_index("ix_accommodation_hotel_status", "accommodation_requests", ["hotel_id", "status"])
    # Per-team progress and the incomplete-teams view
    op.create_index("ix_accommodation_team_status", "accommodation_requests", ["team_request_id", "status"])


def downgrade() -> None:
    op.drop_table("accommodation_requests")
    op.drop_table("room_categories")
    op.drop_table("hotels")
    op.drop_table("hotel_clusters")
    op.drop_table("team_members")
    op.drop_table("team_requests")
    op.drop_table("users")
