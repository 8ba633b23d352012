"""Checkout schema: coupons, pending booking intents, payment events.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


JSONB_TYPE = postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite")

coupon_discount_type = sa.Enum("PERCENTAGE", "FIXED", name="coupondiscounttype")
booking_intent_status = sa.Enum(
    "PENDING", "CONFIRMED", "FAILED", "EXPIRED", name="bookingintentstatus"
)


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
        "coupons",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("discount_type", coupon_discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column(
            "times_used", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
    )

    op.create_table(
        "pending_booking_intents",
        sa.Column("payment_intent_id", sa.String(length=255), primary_key=True),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("date", sa.String(length=32), nullable=False),
        sa.Column("time", sa.String(length=32), nullable=False),
        sa.Column("players", sa.Integer(), nullable=False),
        sa.Column("holes", sa.Integer(), nullable=False),
        sa.Column("pricing_snapshot", JSONB_TYPE, nullable=False),
        sa.Column("promo_code", sa.String(length=64), nullable=True),
        sa.Column("guest_email", sa.String(length=320), nullable=True),
        sa.Column("guest_name", sa.String(length=255), nullable=True),
        sa.Column("status", booking_intent_status, nullable=False),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_pending_booking_intents_status_created",
        "pending_booking_intents",
        ["status", "created_at"],
    )

    op.create_table(
        "payment_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "provider_event_id", sa.String(length=255), nullable=False, unique=True
        ),
        sa.Column(
            "event_type", sa.String(length=128), nullable=False, server_default=""
        ),
        sa.Column(
            "received_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("raw", JSONB_TYPE, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("payment_events")
    op.drop_index(
        "ix_pending_booking_intents_status_created",
        table_name="pending_booking_intents",
    )
    op.drop_table("pending_booking_intents")
    op.drop_table("coupons")
    bind = op.get_bind()
    booking_intent_status.drop(bind, checkfirst=True)
    coupon_discount_type.drop(bind, checkfirst=True)
