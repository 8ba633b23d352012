"""Seed a couple of promo codes for local checkout testing."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from teetime.db.session import session_scope
from teetime.models import Coupon, CouponDiscountType
from teetime.services.coupon_service import get_coupon

SEED_COUPONS: tuple[tuple[str, CouponDiscountType, Decimal, int | None], ...] = (
    ("WELCOME10", CouponDiscountType.PERCENTAGE, Decimal("10"), None),
    ("SAVE20", CouponDiscountType.PERCENTAGE, Decimal("20"), 100),
    ("TWILIGHT15", CouponDiscountType.FIXED, Decimal("15.00"), 50),
)


async def seed_coupons() -> None:
    created = 0
    expires_at = datetime.now(UTC) + timedelta(days=365)
    async with session_scope() as session:
        for code, discount_type, value, usage_limit in SEED_COUPONS:
            if await get_coupon(session, code) is not None:
                continue
            session.add(
                Coupon(
                    code=code,
                    discount_type=discount_type,
                    discount_value=value,
                    expires_at=expires_at,
                    usage_limit=usage_limit,
                    times_used=0,
                    active=True,
                )
            )
            created += 1

        if created:
            await session.commit()

    print(f"Seeded {created} coupon(s).")


def main() -> None:
    asyncio.run(seed_coupons())


if __name__ == "__main__":
    main()
