"""Promo code lookup and usage accounting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.core.errors import CouponInvalidError
from teetime.models import Coupon, CouponDiscountType


@dataclass(slots=True, frozen=True)
class CouponTerms:
    """Discount terms of a redeemable coupon."""

    code: str
    discount_type: CouponDiscountType
    discount_value: Decimal


def normalize_code(code: str) -> str:
    return code.strip().upper()


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


async def get_coupon(session: AsyncSession, code: str) -> Coupon | None:
    stmt = select(Coupon).where(func.upper(Coupon.code) == normalize_code(code))
    result = await session.execute(stmt)
    return result.scalars().first()


async def validate_coupon(
    session: AsyncSession,
    code: str,
    *,
    now: datetime | None = None,
) -> CouponTerms:
    """Return the discount terms for ``code`` or raise ``CouponInvalidError``."""

    if not code or not code.strip():
        raise CouponInvalidError("Promo code is empty")
    now = now or datetime.now(UTC)

    coupon = await get_coupon(session, code)
    if coupon is None:
        raise CouponInvalidError(f"Unknown promo code {normalize_code(code)}")
    if not coupon.active:
        raise CouponInvalidError(f"Promo code {coupon.code} is inactive")
    if coupon.expires_at is not None and as_utc(coupon.expires_at) < now:
        raise CouponInvalidError(f"Promo code {coupon.code} has expired")
    if coupon.usage_limit is not None and coupon.times_used >= coupon.usage_limit:
        raise CouponInvalidError(f"Promo code {coupon.code} has reached its usage limit")
    if coupon.discount_value < 0:
        raise CouponInvalidError(f"Promo code {coupon.code} has a negative value")

    return CouponTerms(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=Decimal(coupon.discount_value),
    )


async def record_redemption(session: AsyncSession, code: str) -> bool:
    """Count one use of ``code``; the caller owns the commit."""

    coupon = await get_coupon(session, code)
    if coupon is None:
        return False
    coupon.times_used = (coupon.times_used or 0) + 1
    return True
