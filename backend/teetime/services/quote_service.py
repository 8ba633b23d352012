"""Signed, short-lived price quotes.

A quote is never stored. Its integrity rests on an HMAC-SHA256 over the
canonical serialization of seven fields, and ``canonical_payload`` is the only
place that serialization is defined: issuing and verifying both call it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from asgi_correlation_id import correlation_id

from teetime.core.errors import QuoteExpiredError, QuoteInvalidError
from teetime.core.security import SigningKeyProvider, digest_matches, hmac_hexdigest
from teetime.services.pricing_service import PricingBreakdown

logger = logging.getLogger(__name__)

SIGNED_FIELDS: tuple[str, ...] = (
    "currency",
    "tax_rate",
    "subtotal_cents",
    "discount_cents",
    "tax_cents",
    "total_cents",
    "expires_at",
)

DEFAULT_TTL = timedelta(minutes=10)


@dataclass(slots=True, frozen=True)
class PriceQuote:
    """A priced offer plus the signature that pins its amounts."""

    currency: str
    tax_rate: Decimal
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    expires_at: datetime
    quote_hash: str
    promo_code: str | None = None
    promo_applied: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "tax_rate": float(self.tax_rate),
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "quote_hash": self.quote_hash,
            "expires_at": format_timestamp(self.expires_at),
            "promo_code": self.promo_code,
            "promo_applied": self.promo_applied,
        }


def format_tax_rate(rate: Decimal | float | str) -> str:
    """Plain decimal text with no exponent and no trailing zeros."""
    value = Decimal(str(rate)) if isinstance(rate, float) else Decimal(rate)
    text = format(value.normalize(), "f")
    return "0" if text in {"-0", ""} else text


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def canonical_payload(
    *,
    currency: str,
    tax_rate: Decimal | float | str,
    subtotal_cents: int,
    discount_cents: int,
    tax_cents: int,
    total_cents: int,
    expires_at: datetime,
) -> bytes:
    """Serialize the signed fields in their fixed order."""
    values = {
        "currency": currency,
        "tax_rate": format_tax_rate(tax_rate),
        "subtotal_cents": int(subtotal_cents),
        "discount_cents": int(discount_cents),
        "tax_cents": int(tax_cents),
        "total_cents": int(total_cents),
        "expires_at": format_timestamp(expires_at),
    }
    return json.dumps(values, separators=(",", ":"), ensure_ascii=True).encode()


def _payload_for(quote: PriceQuote) -> bytes:
    return canonical_payload(
        currency=quote.currency,
        tax_rate=quote.tax_rate,
        subtotal_cents=quote.subtotal_cents,
        discount_cents=quote.discount_cents,
        tax_cents=quote.tax_cents,
        total_cents=quote.total_cents,
        expires_at=quote.expires_at,
    )


def quote_expiry(now: datetime | None = None, ttl: timedelta = DEFAULT_TTL) -> datetime:
    """Expiry for a quote issued at ``now``, truncated to whole milliseconds."""
    now = now or datetime.now(UTC)
    expires_at = now.astimezone(UTC) + ttl
    return expires_at.replace(microsecond=expires_at.microsecond // 1000 * 1000)


def issue_quote(
    pricing: PricingBreakdown,
    expires_at: datetime,
    *,
    keys: SigningKeyProvider,
) -> PriceQuote:
    """Sign ``pricing`` with the current key."""

    unsigned = PriceQuote(
        currency=pricing.currency.upper(),
        tax_rate=pricing.tax_rate,
        subtotal_cents=pricing.subtotal_cents,
        discount_cents=pricing.discount_cents,
        tax_cents=pricing.tax_cents,
        total_cents=pricing.total_cents,
        expires_at=expires_at.astimezone(UTC),
        quote_hash="",
        promo_code=pricing.promo_code,
        promo_applied=pricing.promo_applied,
    )
    signature = hmac_hexdigest(keys.current_key(), _payload_for(unsigned))
    return replace(unsigned, quote_hash=signature)


def verify_quote(
    submitted: PriceQuote,
    *,
    keys: SigningKeyProvider,
    now: datetime,
) -> PriceQuote:
    """Return ``submitted`` when it is unexpired and untampered.

    Currency is compared byte for byte; ``tax_rate`` is signed by value, so the
    returned quote carries its canonical form and a UTC-aware expiry.
    Raises ``QuoteExpiredError`` or ``QuoteInvalidError``. Has no side effects.
    """

    expires_at = submitted.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    if now > expires_at:
        logger.info("Rejected quote that expired at %s", format_timestamp(expires_at))
        raise QuoteExpiredError("Quote has expired")

    if not submitted.quote_hash or not digest_matches(
        submitted.quote_hash, _payload_for(submitted), keys.verification_keys()
    ):
        logger.warning(
            "Rejected quote with mismatched signature "
            "(total_cents=%s, currency=%s, request=%s)",
            submitted.total_cents,
            submitted.currency,
            correlation_id.get() or "-",
        )
        raise QuoteInvalidError("Invalid quote hash")

    amounts = (
        submitted.subtotal_cents,
        submitted.discount_cents,
        submitted.tax_cents,
        submitted.total_cents,
    )
    if (
        any(amount < 0 for amount in amounts)
        or submitted.discount_cents > submitted.subtotal_cents
        or submitted.total_cents
        != submitted.subtotal_cents - submitted.discount_cents + submitted.tax_cents
    ):
        logger.error("Signed quote failed its arithmetic check; signing key may be exposed")
        raise QuoteInvalidError("Quote amounts are inconsistent")

    return replace(
        submitted,
        tax_rate=Decimal(format_tax_rate(submitted.tax_rate)),
        expires_at=expires_at.astimezone(UTC),
    )
