"""Spaces, weekly hours and reservations.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "spaces",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("always_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hourly_rate", sa.Numeric(12, 2)),
        sa.Column("halfday_rate", sa.Numeric(12, 2)),
        sa.Column("daily_rate", sa.Numeric(12, 2)),
        sa.Column("monthly_rate", sa.Numeric(12, 2)),
        sa.Column("yearly_rate", sa.Numeric(12, 2)),
        *_timestamps(),
    )

    op.create_table(
        "space_hours",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "space_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("spaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("open_time", sa.Time()),
        sa.Column("close_time", sa.Time()),
        *_timestamps(),
        sa.UniqueConstraint("space_id", "day_of_week", name="uq_space_hours_day"),
    )

    pricing_type_enum = sa.Enum(
        "hourly", "halfday", "daily", "monthly", "yearly", name="pricingtype"
    )
    half_day_session_enum = sa.Enum(
        "morning", "afternoon", "day", "evening", "night", name="halfdaysession"
    )
    reservation_status_enum = sa.Enum(
        "pending",
        "confirmed",
        "active",
        "completed",
        "cancelled",
        name="reservationstatus",
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "space_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("spaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("pricing_type", pricing_type_enum, nullable=False),
        sa.Column("half_day_session", half_day_session_enum),
        sa.Column(
            "status",
            reservation_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2)),
        sa.Column("notes", sa.String(length=1024)),
        *_timestamps(),
    )
    op.create_index(
        "ix_reservations_space_window",
        "reservations",
        ["space_id", "start_at", "end_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_reservations_space_window", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("space_hours")
    op.drop_table("spaces")
    sa.Enum(name="reservationstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="halfdaysession").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="pricingtype").drop(op.get_bind(), checkfirst=True)
