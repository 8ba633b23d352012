"""Specialized settings adapters for integrations."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from teetime.core.config import get_settings


class PaymentSettings(BaseModel):
    """Slim view of payment-related configuration."""

    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    stripe_webhook_secret: str | None = None
    stripe_offline: bool = False
    payments_webhook_verify: bool = True


class QuoteSettings(BaseModel):
    """Slim view of the pricing and quote-signing configuration."""

    secret: str
    previous_secrets: list[str] = []
    ttl_minutes: int = 10
    currency: str = "USD"
    tax_rate: Decimal = Decimal("0.16")
    pending_intent_ttl_minutes: int = 60


def get_payment_settings() -> PaymentSettings:
    """Return payment-specific configuration."""

    settings = get_settings()
    return PaymentSettings(
        stripe_secret_key=settings.stripe_secret_key or None,
        stripe_publishable_key=settings.stripe_publishable_key or None,
        stripe_webhook_secret=settings.stripe_webhook_secret or None,
        stripe_offline=settings.stripe_offline,
        payments_webhook_verify=settings.payments_webhook_verify,
    )


def get_quote_settings() -> QuoteSettings:
    """Return quote-specific configuration."""

    settings = get_settings()
    return QuoteSettings(
        secret=settings.quote_secret,
        previous_secrets=list(settings.quote_previous_secrets),
        ttl_minutes=settings.quote_ttl_minutes,
        currency=settings.quote_currency,
        tax_rate=settings.quote_tax_rate,
        pending_intent_ttl_minutes=settings.pending_intent_ttl_minutes,
    )
