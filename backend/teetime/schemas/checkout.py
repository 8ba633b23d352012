"""Checkout request and response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from teetime.models import BookingIntentStatus


def _decimal_from_number(value: Any) -> Any:
    # floats arrive from JSON; go through repr so 0.16 stays 0.16
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


class BookingFields(BaseModel):
    """Tee time selection shared by quote and intent requests."""

    course_id: str = Field(
        min_length=1,
        max_length=128,
        validation_alias=AliasChoices("courseId", "course_id"),
    )
    date: str = Field(min_length=1, max_length=32)
    time: str = Field(min_length=1, max_length=32)
    players: int = Field(gt=0)
    holes: int = Field(gt=0)

    model_config = ConfigDict(str_strip_whitespace=True)


class QuoteRequest(BookingFields):
    """Input payload for pricing a tee time."""

    base_price: Decimal = Field(
        ge=0, validation_alias=AliasChoices("basePrice", "base_price")
    )
    promo_code: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("promoCode", "promo_code"),
    )

    @field_validator("base_price", mode="before")
    @classmethod
    def _coerce_base_price(cls, value: Any) -> Any:
        return _decimal_from_number(value)


class QuoteRead(BaseModel):
    """Signed quote returned to the client."""

    currency: str
    tax_rate: float
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    quote_hash: str
    expires_at: str
    promo_code: str | None = None
    promo_applied: bool = False


class IntentCreateRequest(BookingFields):
    """A quote as issued plus the booking it pays for."""

    currency: str = Field(min_length=3, max_length=3)
    tax_rate: Decimal = Field(ge=0)
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    quote_hash: str = Field(min_length=1, max_length=128)
    expires_at: datetime
    promo_code: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("promoCode", "promo_code"),
    )
    guest_email: str | None = Field(
        default=None,
        max_length=320,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        validation_alias=AliasChoices("guestEmail", "guest_email"),
    )
    guest_name: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("guestName", "guest_name"),
    )

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _coerce_tax_rate(cls, value: Any) -> Any:
        return _decimal_from_number(value)


class PricingSnapshotRead(BaseModel):
    """Pricing as charged, stored with the pending booking."""

    currency: str
    tax_rate: float
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int
    quote_hash: str
    created_at: str
    promo_code: str | None = None

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _tax_rate_number(cls, value: Any) -> Any:
        if isinstance(value, (str, Decimal)):
            return float(value)
        return value


class IntentCreateResponse(BaseModel):
    """Response payload returned when creating a payment intent."""

    client_secret: str
    payment_intent_id: str
    pricing_snapshot: PricingSnapshotRead


class BookingIntentRead(BaseModel):
    """Stored pending booking, as shown on the confirmation page."""

    payment_intent_id: str
    course_id: str
    date: str
    time: str
    players: int
    holes: int
    status: BookingIntentStatus
    pricing_snapshot: PricingSnapshotRead
    guest_name: str | None = None
    created_at: datetime
    confirmed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
