"""Quote signing and verification."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from teetime.core.errors import QuoteExpiredError, QuoteInvalidError
from teetime.core.security import StaticSigningKeys, hmac_hexdigest
from teetime.services import pricing_service, quote_service
from teetime.services.quote_service import PriceQuote

NOW = datetime(2026, 5, 1, 14, 30, 15, 123456, tzinfo=UTC)


def _pricing(base: str = "295.00"):
    return pricing_service.calculate_breakdown(
        Decimal(base), tax_rate=Decimal("0.16"), currency="USD"
    )


def _issue(keys: StaticSigningKeys, *, now: datetime = NOW) -> PriceQuote:
    return quote_service.issue_quote(
        _pricing(), quote_service.quote_expiry(now), keys=keys
    )


def test_issued_quote_verifies(signing_keys: StaticSigningKeys) -> None:
    quote = _issue(signing_keys)
    assert len(quote.quote_hash) == 64
    assert quote.total_cents == 34220
    verified = quote_service.verify_quote(
        quote, keys=signing_keys, now=NOW + timedelta(minutes=9)
    )
    assert verified == quote


def test_expiry_is_ten_minutes_truncated_to_milliseconds() -> None:
    expires_at = quote_service.quote_expiry(NOW)
    assert expires_at == datetime(2026, 5, 1, 14, 40, 15, 123000, tzinfo=UTC)
    assert quote_service.format_timestamp(expires_at) == "2026-05-01T14:40:15.123000Z"


@pytest.mark.parametrize(
    "field, value",
    [
        ("currency", "EUR"),
        ("tax_rate", Decimal("0.15")),
        ("subtotal_cents", 29400),
        ("discount_cents", 100),
        ("tax_cents", 4700),
        ("total_cents", 100),
        ("expires_at", NOW + timedelta(hours=1)),
    ],
)
def test_any_signed_field_change_is_rejected(
    signing_keys: StaticSigningKeys, field: str, value: object
) -> None:
    tampered = replace(_issue(signing_keys), **{field: value})
    with pytest.raises(QuoteInvalidError):
        quote_service.verify_quote(tampered, keys=signing_keys, now=NOW)


def test_promo_code_is_not_signed(signing_keys: StaticSigningKeys) -> None:
    quote = replace(_issue(signing_keys), promo_code="ANYTHING")
    assert quote_service.verify_quote(quote, keys=signing_keys, now=NOW) == quote


def test_expired_quote_is_rejected_before_signature(
    signing_keys: StaticSigningKeys,
) -> None:
    quote = replace(_issue(signing_keys), quote_hash="not-a-hash")
    with pytest.raises(QuoteExpiredError):
        quote_service.verify_quote(
            quote, keys=signing_keys, now=NOW + timedelta(minutes=10, seconds=1)
        )


def test_quote_is_valid_up_to_its_expiry_instant(
    signing_keys: StaticSigningKeys,
) -> None:
    quote = _issue(signing_keys)
    quote_service.verify_quote(quote, keys=signing_keys, now=quote.expires_at)


def test_wrong_key_is_rejected(signing_keys: StaticSigningKeys) -> None:
    quote = _issue(StaticSigningKeys("some-other-secret"))
    with pytest.raises(QuoteInvalidError):
        quote_service.verify_quote(quote, keys=signing_keys, now=NOW)


def test_previous_key_still_verifies_after_rotation() -> None:
    old_keys = StaticSigningKeys("old-secret")
    quote = _issue(old_keys)
    rotated = StaticSigningKeys("new-secret", ["old-secret"])
    quote_service.verify_quote(quote, keys=rotated, now=NOW)

    reissued = _issue(rotated)
    assert reissued.quote_hash != quote.quote_hash
    with pytest.raises(QuoteInvalidError):
        quote_service.verify_quote(reissued, keys=old_keys, now=NOW)


@pytest.mark.parametrize("bad_hash", ["", "zz", "é" * 64])
def test_malformed_hash_is_rejected(
    signing_keys: StaticSigningKeys, bad_hash: str
) -> None:
    quote = replace(_issue(signing_keys), quote_hash=bad_hash)
    with pytest.raises(QuoteInvalidError):
        quote_service.verify_quote(quote, keys=signing_keys, now=NOW)


def test_uppercase_hash_is_accepted(signing_keys: StaticSigningKeys) -> None:
    quote = _issue(signing_keys)
    shouted = replace(quote, quote_hash=quote.quote_hash.upper())
    quote_service.verify_quote(shouted, keys=signing_keys, now=NOW)


def test_float_and_decimal_tax_rate_sign_identically(
    signing_keys: StaticSigningKeys,
) -> None:
    quote = _issue(signing_keys)
    from_json = replace(quote, tax_rate=Decimal(repr(0.16)))
    quote_service.verify_quote(from_json, keys=signing_keys, now=NOW)
    assert quote_service.format_tax_rate(0.16) == "0.16"
    assert quote_service.format_tax_rate(Decimal("0.1600")) == "0.16"


@pytest.mark.parametrize("currency", ["usd", " USD", "Usd"])
def test_currency_is_signed_exactly(
    signing_keys: StaticSigningKeys, currency: str
) -> None:
    quote = _issue(signing_keys)
    with pytest.raises(QuoteInvalidError):
        quote_service.verify_quote(
            replace(quote, currency=currency), keys=signing_keys, now=NOW
        )


def test_verified_quote_carries_canonical_tax_rate(
    signing_keys: StaticSigningKeys,
) -> None:
    quote = _issue(signing_keys)
    padded = replace(quote, tax_rate=Decimal("0.1600"))
    verified = quote_service.verify_quote(padded, keys=signing_keys, now=NOW)
    assert str(verified.tax_rate) == "0.16"
    assert verified.currency == "USD"

    naive = replace(quote, expires_at=quote.expires_at.replace(tzinfo=None))
    verified = quote_service.verify_quote(naive, keys=signing_keys, now=NOW)
    assert verified.expires_at.tzinfo is not None
    assert verified.expires_at == quote.expires_at


def test_canonical_payload_layout() -> None:
    payload = quote_service.canonical_payload(
        currency="USD",
        tax_rate=Decimal("0.16"),
        subtotal_cents=29500,
        discount_cents=0,
        tax_cents=4720,
        total_cents=34220,
        expires_at=datetime(2026, 5, 1, 14, 40, 15, 123000, tzinfo=UTC),
    )
    assert payload == (
        b'{"currency":"USD","tax_rate":"0.16","subtotal_cents":29500,'
        b'"discount_cents":0,"tax_cents":4720,"total_cents":34220,'
        b'"expires_at":"2026-05-01T14:40:15.123000Z"}'
    )
    assert tuple(json.loads(payload)) == quote_service.SIGNED_FIELDS


def test_signed_but_inconsistent_amounts_are_rejected(
    signing_keys: StaticSigningKeys,
) -> None:
    expires_at = quote_service.quote_expiry(NOW)
    forged_payload = quote_service.canonical_payload(
        currency="USD",
        tax_rate=Decimal("0.16"),
        subtotal_cents=29500,
        discount_cents=0,
        tax_cents=4720,
        total_cents=100,
        expires_at=expires_at,
    )
    forged = PriceQuote(
        currency="USD",
        tax_rate=Decimal("0.16"),
        subtotal_cents=29500,
        discount_cents=0,
        tax_cents=4720,
        total_cents=100,
        expires_at=expires_at,
        quote_hash=hmac_hexdigest(signing_keys.current_key(), forged_payload),
    )
    with pytest.raises(QuoteInvalidError, match="inconsistent"):
        quote_service.verify_quote(forged, keys=signing_keys, now=NOW)
