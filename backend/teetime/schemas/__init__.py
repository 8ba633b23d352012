"""Pydantic schemas for request and response payloads."""

from teetime.schemas.checkout import (
    BookingIntentRead,
    IntentCreateRequest,
    IntentCreateResponse,
    PricingSnapshotRead,
    QuoteRead,
    QuoteRequest,
)

__all__ = [
    "BookingIntentRead",
    "IntentCreateRequest",
    "IntentCreateResponse",
    "PricingSnapshotRead",
    "QuoteRead",
    "QuoteRequest",
]
