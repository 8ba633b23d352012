"""Pricing engine for tee time checkout.

Every amount is an integer number of minor currency units. Conversions and
percentages go through ``Decimal`` with ``ROUND_HALF_UP`` so a quote priced
twice from the same inputs is identical down to the last cent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.core.errors import CheckoutValidationError, CouponInvalidError
from teetime.core.settings import QuoteSettings, get_quote_settings
from teetime.models import CouponDiscountType
from teetime.services import coupon_service
from teetime.services.coupon_service import CouponTerms

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = Decimal("100")
_WHOLE = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(slots=True, frozen=True)
class PricingBreakdown:
    """Price components for one booking, in minor units."""

    currency: str
    tax_rate: Decimal
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    promo_code: str | None = None
    promo_applied: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "tax_rate": str(self.tax_rate),
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "promo_code": self.promo_code,
            "promo_applied": self.promo_applied,
        }


def round_minor(value: Decimal) -> int:
    return int(value.quantize(_WHOLE, rounding=ROUND_HALF_UP))


def to_minor_units(amount: Decimal) -> int:
    return round_minor(Decimal(amount) * MINOR_UNITS_PER_MAJOR)


def discount_for(coupon: CouponTerms | None, subtotal_cents: int) -> int:
    """Discount granted by ``coupon``, clamped into ``[0, subtotal_cents]``."""

    if coupon is None or subtotal_cents <= 0:
        return 0
    value = max(Decimal(coupon.discount_value), Decimal("0"))
    if coupon.discount_type is CouponDiscountType.PERCENTAGE:
        percent = min(value, _HUNDRED)
        raw = round_minor(Decimal(subtotal_cents) * percent / _HUNDRED)
    else:
        raw = to_minor_units(value)
    return max(0, min(raw, subtotal_cents))


def calculate_breakdown(
    base_price: Decimal,
    *,
    tax_rate: Decimal,
    currency: str,
    coupon: CouponTerms | None = None,
    promo_code: str | None = None,
) -> PricingBreakdown:
    """Pure price computation once the coupon has been resolved."""

    base_price = Decimal(base_price)
    if not base_price.is_finite() or base_price < 0:
        raise CheckoutValidationError(
            "Base price must be a non-negative amount", ["basePrice"]
        )

    subtotal = to_minor_units(base_price)
    discount = discount_for(coupon, subtotal)
    tax = round_minor(Decimal(subtotal - discount) * Decimal(tax_rate))
    total = subtotal - discount + tax

    return PricingBreakdown(
        currency=currency.upper(),
        tax_rate=Decimal(tax_rate),
        subtotal_cents=subtotal,
        discount_cents=discount,
        tax_cents=tax,
        total_cents=total,
        promo_code=promo_code,
        promo_applied=coupon is not None and discount > 0,
    )


async def compute_pricing(
    session: AsyncSession,
    *,
    base_price: Decimal,
    promo_code: str | None = None,
    settings: QuoteSettings | None = None,
    now: datetime | None = None,
) -> PricingBreakdown:
    """Price a booking, resolving ``promo_code`` against the coupon store.

    A promo code that cannot be redeemed never fails the quote: it is logged
    and priced as no discount.
    """

    settings = settings or get_quote_settings()
    promo_code = promo_code.strip() if promo_code else None

    coupon: CouponTerms | None = None
    if promo_code:
        try:
            coupon = await coupon_service.validate_coupon(session, promo_code, now=now)
        except CouponInvalidError as exc:
            logger.warning("Promo code ignored: %s", exc)
        except SQLAlchemyError:
            logger.exception(
                "Coupon lookup failed for %s; pricing without discount", promo_code
            )
            await session.rollback()

    return calculate_breakdown(
        base_price,
        tax_rate=settings.tax_rate,
        currency=settings.currency,
        coupon=coupon,
        promo_code=promo_code,
    )
