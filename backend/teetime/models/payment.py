"""Payment processor event log."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from teetime.db.base import Base
from teetime.models.mixins import utcnow

JSONB_TYPE = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


class PaymentEvent(Base):
    """Raw provider webhook events for auditing and idempotency."""

    __tablename__ = "payment_events"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    provider_event_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    raw: Mapped[dict[str, Any]] = mapped_column(JSONB_TYPE, nullable=False)
