"""Configuration parsing and log redaction."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from teetime.core.config import Settings
from teetime.core.security import signing_keys_from_settings
from teetime.core.settings import QuoteSettings
from teetime.security.logging_filters import SensitiveFilter
from teetime.security.redact import mask_email


def test_csv_settings_are_split(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUOTE_PREVIOUS_SECRETS", "old-one, old-two,")
    monkeypatch.setenv("CORS_ALLOWLIST", "https://book.example.com")
    monkeypatch.setenv("QUOTE_CURRENCY", " usd ")
    settings = Settings()  # type: ignore[call-arg]
    assert settings.quote_previous_secrets == ["old-one", "old-two"]
    assert settings.cors_allowlist == ["https://book.example.com"]
    assert settings.quote_currency == "USD"
    assert settings.quote_tax_rate == Decimal("0.16")
    assert settings.quote_ttl_minutes == 10


def test_tax_rate_must_be_a_fraction(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUOTE_TAX_RATE", "16")
    with pytest.raises(ValidationError):
        Settings()  # type: ignore[call-arg]


def test_signing_keys_include_previous_secrets() -> None:
    keys = signing_keys_from_settings(
        QuoteSettings(secret="current", previous_secrets=["retired", ""])
    )
    assert keys.current_key() == b"current"
    assert tuple(keys.verification_keys()) == (b"current", b"retired")


def test_empty_signing_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        signing_keys_from_settings(QuoteSettings(secret=""))


def test_sensitive_filter_scrubs_secrets() -> None:
    record = logging.LogRecord(
        name="teetime",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="created %s with key %s",
        args=("pi_3Nabc_secret_XyZ123", "sk_test_51Habcdef"),
        exc_info=None,
    )
    assert SensitiveFilter().filter(record) is True
    rendered = record.getMessage()
    assert "secret_XyZ123" not in rendered
    assert "sk_test_51Habcdef" not in rendered
    assert "**REDACTED**" in rendered


def test_mask_email() -> None:
    assert mask_email("jordan@example.com") == "j***@example.com"
    assert mask_email(None) is None
