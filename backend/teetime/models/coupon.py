"""Promo code definitions redeemable at checkout."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from teetime.db.base import Base
from teetime.models.mixins import TimestampMixin


class CouponDiscountType(str, enum.Enum):
    """Kinds of discount a coupon can grant."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(TimestampMixin, Base):
    """A promo code with its discount terms and usage accounting."""

    __tablename__ = "coupons"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    discount_type: Mapped[CouponDiscountType] = mapped_column(
        Enum(CouponDiscountType), nullable=False
    )
    # percent for PERCENTAGE, major currency units for FIXED
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
