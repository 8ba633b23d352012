"""Redeem a verified quote into a payment authorization and pending booking."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.core.errors import CheckoutValidationError, IntentCreationFailedError
from teetime.integrations import StripeClient, StripeClientError
from teetime.models import BookingIntentStatus, PendingBookingIntent
from teetime.security.redact import mask_email
from teetime.services.quote_service import PriceQuote, format_tax_rate

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BookingParams:
    """What is being booked; immutable once an intent exists."""

    course_id: str
    date: str
    time: str
    players: int
    holes: int
    guest_email: str | None = None
    guest_name: str | None = None

    def validate(self) -> None:
        missing = [
            name
            for name, value in (
                ("courseId", self.course_id),
                ("date", self.date),
                ("time", self.time),
            )
            if not value or not str(value).strip()
        ]
        missing.extend(
            name
            for name, value in (("players", self.players), ("holes", self.holes))
            if not isinstance(value, int) or value <= 0
        )
        if missing:
            raise CheckoutValidationError("Missing or malformed booking fields", missing)

    def metadata(self) -> dict[str, str]:
        return {
            "courseId": self.course_id,
            "date": self.date,
            "time": self.time,
            "players": str(self.players),
            "holes": str(self.holes),
            "guestEmail": self.guest_email or "",
            "guestName": self.guest_name or "",
        }


@dataclass(slots=True)
class IssuedIntent:
    """Client-facing result of a redeemed quote."""

    client_secret: str
    payment_intent_id: str
    pricing_snapshot: dict[str, Any]


def build_pricing_snapshot(quote: PriceQuote, *, created_at: datetime) -> dict[str, Any]:
    """Copy of the quote as charged, kept with the booking."""
    return {
        "currency": quote.currency,
        "tax_rate": format_tax_rate(quote.tax_rate),
        "subtotal_cents": quote.subtotal_cents,
        "discount_cents": quote.discount_cents,
        "tax_cents": quote.tax_cents,
        "total_cents": quote.total_cents,
        "quote_hash": quote.quote_hash,
        "created_at": created_at.astimezone(UTC).isoformat(),
        "promo_code": redeemed_promo_code(quote),
    }


def redeemed_promo_code(quote: PriceQuote) -> str | None:
    # promo_code is unsigned; only keep it when the signed amounts carry a discount
    if quote.promo_code and quote.discount_cents > 0:
        return quote.promo_code.strip().upper()
    return None


def idempotency_seed(booking: BookingParams, quote: PriceQuote) -> str:
    """One quote redeemed for one booking maps to one authorization.

    Covers every field sent to the processor, so a resubmit with corrected
    guest details gets its own authorization rather than a key conflict.
    """
    material = "|".join(
        (
            quote.quote_hash,
            booking.course_id,
            booking.date,
            booking.time,
            str(booking.players),
            str(booking.holes),
            booking.guest_email or "",
            booking.guest_name or "",
        )
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:40]


async def create_intent(
    session: AsyncSession,
    *,
    booking: BookingParams,
    quote: PriceQuote,
    stripe: StripeClient,
    now: datetime | None = None,
) -> IssuedIntent:
    """Authorize ``quote.total_cents`` and persist the pending booking.

    ``quote`` must already have passed ``quote_service.verify_quote``. Nothing
    is written when the processor call fails.
    """

    booking.validate()
    if quote.total_cents <= 0:
        raise CheckoutValidationError("Quote total must be positive", ["total_cents"])
    now = now or datetime.now(UTC)

    metadata = booking.metadata()
    metadata["quote_hash"] = quote.quote_hash
    metadata["promoCode"] = redeemed_promo_code(quote) or ""

    try:
        intent = stripe.create_payment_intent(
            amount=quote.total_cents,
            currency=quote.currency,
            metadata=metadata,
            customer_email=booking.guest_email,
            idempotency_seed=idempotency_seed(booking, quote),
        )
    except StripeClientError as exc:
        logger.warning(
            "Payment authorization failed for course %s on %s: %s",
            booking.course_id,
            booking.date,
            exc,
        )
        raise IntentCreationFailedError("Payment processor rejected the request") from exc
    if not intent.client_secret:
        raise IntentCreationFailedError("Payment processor did not return a client secret")

    existing = await session.get(PendingBookingIntent, intent.id)
    if existing is not None:
        logger.info("Replayed checkout for payment intent %s", intent.id)
        return IssuedIntent(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            pricing_snapshot=dict(existing.pricing_snapshot),
        )

    snapshot = build_pricing_snapshot(quote, created_at=now)
    record = PendingBookingIntent(
        payment_intent_id=intent.id,
        course_id=booking.course_id,
        date=booking.date,
        time=booking.time,
        players=booking.players,
        holes=booking.holes,
        pricing_snapshot=snapshot,
        promo_code=snapshot["promo_code"],
        guest_email=booking.guest_email,
        guest_name=booking.guest_name,
        status=BookingIntentStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    session.add(record)
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent submit of the same quote stored it first
        await session.rollback()
        stored = await session.get(PendingBookingIntent, intent.id)
        if stored is None:
            raise IntentCreationFailedError("Failed to record pending booking")
        return IssuedIntent(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            pricing_snapshot=dict(stored.pricing_snapshot),
        )
    except SQLAlchemyError as exc:
        await session.rollback()
        # the authorization exists upstream; the webhook remains authoritative
        logger.exception(
            "Payment intent %s created but pending booking was not stored",
            intent.id,
        )
        raise IntentCreationFailedError("Failed to record pending booking") from exc

    logger.info(
        "Created payment intent %s for %s %s (guest %s)",
        intent.id,
        quote.total_cents,
        quote.currency,
        mask_email(booking.guest_email) or "-",
    )
    return IssuedIntent(
        client_secret=intent.client_secret,
        payment_intent_id=intent.id,
        pricing_snapshot=snapshot,
    )
