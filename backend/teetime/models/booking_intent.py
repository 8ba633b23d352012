"""Provisional bookings created when a quote is redeemed."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from teetime.db.base import Base
from teetime.models.mixins import TimestampMixin

JSONB_TYPE = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


class BookingIntentStatus(str, enum.Enum):
    """Lifecycle states for a pending booking intent."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    EXPIRED = "expired"


class PendingBookingIntent(TimestampMixin, Base):
    """Booking parameters and pricing snapshot awaiting payment."""

    __tablename__ = "pending_booking_intents"
    __table_args__ = (
        Index("ix_pending_booking_intents_status_created", "status", "created_at"),
    )

    payment_intent_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    time: Mapped[str] = mapped_column(String(32), nullable=False)
    players: Mapped[int] = mapped_column(Integer, nullable=False)
    holes: Mapped[int] = mapped_column(Integer, nullable=False)
    pricing_snapshot: Mapped[dict[str, Any]] = mapped_column(
        JSONB_TYPE, nullable=False
    )
    promo_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    guest_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    guest_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[BookingIntentStatus] = mapped_column(
        Enum(BookingIntentStatus),
        nullable=False,
        default=BookingIntentStatus.PENDING,
    )
    failure_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
