"""Initial schema: users, venues, bookings and the webhook event ledger.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_BOOKING = sa.text("status IN ('pending', 'confirmed')")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("role", sa.String(10), nullable=False, server_default=sa.text("'user'")),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("role IN ('user', 'owner', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Venues table; list columns hold JSON text
    op.create_table(
        "venues",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("owner_id", sa.String(32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("base_price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("amenities", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("event_types", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("images", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.CheckConstraint("capacity >= 0", name="check_venue_capacity_non_negative"),
        sa.CheckConstraint("base_price >= 0", name="check_venue_price_non_negative"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'suspended')", name="check_venue_status"),
    )
    op.create_index("ix_venues_owner_id", "venues", ["owner_id"])
    op.create_index("ix_venues_city", "venues", ["city"])
    # Every public search filters on both
    op.create_index("ix_venues_listing", "venues", ["is_deleted", "status"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("user_id", sa.String(32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("venue_id", sa.String(32), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("payment_intent_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("guests > 0", name="check_booking_guests_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'failed', 'declined', 'cancelled')",
            name="check_booking_status",
        ),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_venue_id", "bookings", ["venue_id"])
    op.create_index("ix_bookings_payment_intent_id", "bookings", ["payment_intent_id"])
    # ONE ACTIVE BOOKING PER VENUE PER DAY.
    # Two concurrent inserts for the same day both pass the service pre-check;
    # this index makes the second one fail. Released bookings (failed, declined,
    # cancelled) fall outside the predicate, so the day can be booked again.
    op.create_index(
        "uq_bookings_venue_day_active",
        "bookings",
        ["venue_id", "date"],
        unique=True,
        postgresql_where=ACTIVE_BOOKING,
        sqlite_where=ACTIVE_BOOKING,
    )

    # Processed webhook events: the primary key is the idempotency check
    op.create_table(
        "processed_events",
        sa.Column("event_id", sa.String(255), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("processed_events")
    op.drop_index("uq_bookings_venue_day_active", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("venues")
    op.drop_table("users")
