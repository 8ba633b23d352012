"""Lifecycle transitions for pending booking intents."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.models import BookingIntentStatus, PendingBookingIntent
from teetime.services import coupon_service

logger = logging.getLogger(__name__)


async def get_intent(
    session: AsyncSession, payment_intent_id: str
) -> PendingBookingIntent | None:
    if not payment_intent_id:
        return None
    return await session.get(PendingBookingIntent, payment_intent_id)


async def mark_confirmed(
    session: AsyncSession,
    payment_intent_id: str,
    *,
    now: datetime | None = None,
) -> PendingBookingIntent | None:
    """Confirm the booking once the processor reports success."""

    intent = await get_intent(session, payment_intent_id)
    if intent is None:
        logger.warning("Payment succeeded for unknown intent %s", payment_intent_id)
        return None
    if intent.status is BookingIntentStatus.CONFIRMED:
        return intent

    now = now or datetime.now(UTC)
    if intent.status is not BookingIntentStatus.PENDING:
        logger.info(
            "Confirming %s intent %s after late payment success",
            intent.status.value,
            payment_intent_id,
        )
    intent.status = BookingIntentStatus.CONFIRMED
    intent.confirmed_at = now
    intent.failure_reason = None
    intent.updated_at = now
    if intent.promo_code:
        await coupon_service.record_redemption(session, intent.promo_code)
    await session.commit()
    return intent


async def mark_failed(
    session: AsyncSession,
    payment_intent_id: str,
    *,
    reason: str | None = None,
    now: datetime | None = None,
) -> PendingBookingIntent | None:
    """Record a failed payment; only pending intents change state."""

    intent = await get_intent(session, payment_intent_id)
    if intent is None:
        return None
    if intent.status is not BookingIntentStatus.PENDING:
        return intent
    intent.status = BookingIntentStatus.FAILED
    intent.failure_reason = reason
    intent.updated_at = now or datetime.now(UTC)
    await session.commit()
    return intent


async def expire_stale_intents(
    session: AsyncSession,
    *,
    older_than: timedelta,
    now: datetime | None = None,
) -> int:
    """Move pending intents created before ``now - older_than`` to expired."""

    now = now or datetime.now(UTC)
    cutoff = now - older_than
    stmt = (
        update(PendingBookingIntent)
        .where(
            PendingBookingIntent.status == BookingIntentStatus.PENDING,
            PendingBookingIntent.created_at < cutoff,
        )
        .values(status=BookingIntentStatus.EXPIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()
    expired = result.rowcount or 0
    if expired:
        logger.info("Expired %s pending booking intent(s) older than %s", expired, cutoff)
    return expired
