"""Tests for the pricing engine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from teetime.core.errors import CheckoutValidationError
from teetime.core.settings import QuoteSettings
from teetime.db.session import get_sessionmaker
from teetime.models import CouponDiscountType
from teetime.services import pricing_service
from teetime.services.coupon_service import CouponTerms

TAX = Decimal("0.16")
SETTINGS = QuoteSettings(secret="unused", currency="USD", tax_rate=TAX)


def _percent(value: str) -> CouponTerms:
    return CouponTerms("PCT", CouponDiscountType.PERCENTAGE, Decimal(value))


def _fixed(value: str) -> CouponTerms:
    return CouponTerms("FIX", CouponDiscountType.FIXED, Decimal(value))


def test_breakdown_without_promo() -> None:
    breakdown = pricing_service.calculate_breakdown(
        Decimal("295.00"), tax_rate=TAX, currency="usd"
    )
    assert breakdown.currency == "USD"
    assert breakdown.subtotal_cents == 29500
    assert breakdown.discount_cents == 0
    assert breakdown.tax_cents == 4720
    assert breakdown.total_cents == 34220
    assert breakdown.promo_applied is False


def test_percentage_discount_is_taxed_after_discount() -> None:
    breakdown = pricing_service.calculate_breakdown(
        Decimal("100.00"), tax_rate=TAX, currency="USD", coupon=_percent("20")
    )
    assert breakdown.subtotal_cents == 10000
    assert breakdown.discount_cents == 2000
    assert breakdown.tax_cents == 1280
    assert breakdown.total_cents == 9280
    assert breakdown.promo_applied is True


def test_fixed_discount_is_clamped_to_subtotal() -> None:
    breakdown = pricing_service.calculate_breakdown(
        Decimal("30.00"), tax_rate=TAX, currency="USD", coupon=_fixed("50.00")
    )
    assert breakdown.discount_cents == 3000
    assert breakdown.tax_cents == 0
    assert breakdown.total_cents == 0


def test_percentage_above_hundred_is_clamped() -> None:
    assert pricing_service.discount_for(_percent("150"), 5000) == 5000
    assert pricing_service.discount_for(_percent("-10"), 5000) == 0


def test_rounding_is_half_up() -> None:
    assert pricing_service.to_minor_units(Decimal("10.005")) == 1001
    # 1003 * 50% = 501.5
    assert pricing_service.discount_for(_percent("50"), 1003) == 502
    breakdown = pricing_service.calculate_breakdown(
        Decimal("10.03"), tax_rate=TAX, currency="USD"
    )
    # 1003 * 0.16 = 160.48
    assert breakdown.tax_cents == 160
    assert breakdown.total_cents == 1163


def test_zero_price_prices_to_zero() -> None:
    breakdown = pricing_service.calculate_breakdown(
        Decimal("0"), tax_rate=TAX, currency="USD", coupon=_percent("10")
    )
    assert breakdown.total_cents == 0
    assert breakdown.promo_applied is False


def test_negative_price_is_rejected() -> None:
    with pytest.raises(CheckoutValidationError) as excinfo:
        pricing_service.calculate_breakdown(
            Decimal("-1.00"), tax_rate=TAX, currency="USD"
        )
    assert excinfo.value.fields == ["basePrice"]


def test_breakdown_is_deterministic() -> None:
    first = pricing_service.calculate_breakdown(
        Decimal("87.35"), tax_rate=TAX, currency="USD", coupon=_percent("15")
    )
    second = pricing_service.calculate_breakdown(
        Decimal("87.35"), tax_rate=TAX, currency="USD", coupon=_percent("15")
    )
    assert first == second
    assert first.total_cents == (
        first.subtotal_cents - first.discount_cents + first.tax_cents
    )


@pytest.mark.asyncio
async def test_compute_pricing_applies_stored_coupon(
    reset_database, db_url: str, seed_coupon
) -> None:
    await seed_coupon("SAVE20")
    async with get_sessionmaker(db_url)() as session:
        breakdown = await pricing_service.compute_pricing(
            session, base_price=Decimal("100.00"), promo_code=" save20 ", settings=SETTINGS
        )
    assert breakdown.discount_cents == 2000
    assert breakdown.total_cents == 9280
    assert breakdown.promo_code == "save20"
    assert breakdown.promo_applied is True


@pytest.mark.asyncio
async def test_compute_pricing_fixed_coupon(
    reset_database, db_url: str, seed_coupon
) -> None:
    await seed_coupon("TEN", discount_type=CouponDiscountType.FIXED, value=Decimal("10"))
    async with get_sessionmaker(db_url)() as session:
        breakdown = await pricing_service.compute_pricing(
            session, base_price=Decimal("50.00"), promo_code="TEN", settings=SETTINGS
        )
    assert breakdown.discount_cents == 1000
    assert breakdown.tax_cents == 640
    assert breakdown.total_cents == 4640


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code, overrides",
    [
        ("NOPE", None),
        ("OLD", {"expires_at": datetime.now(UTC) - timedelta(days=1)}),
        ("USEDUP", {"usage_limit": 5, "times_used": 5}),
        ("OFF", {"active": False}),
    ],
)
async def test_unredeemable_promo_prices_without_discount(
    reset_database, db_url: str, seed_coupon, code: str, overrides
) -> None:
    if overrides is not None:
        await seed_coupon(code, **overrides)
    async with get_sessionmaker(db_url)() as session:
        breakdown = await pricing_service.compute_pricing(
            session, base_price=Decimal("295.00"), promo_code=code, settings=SETTINGS
        )
    assert breakdown.discount_cents == 0
    assert breakdown.total_cents == 34220
    assert breakdown.promo_applied is False
