"""Service layer exports."""
from teetime.services import (
    coupon_service,
    pricing_service,
    quote_service,
    intent_service,
    booking_intent_service,
)

__all__ = [
    "booking_intent_service",
    "coupon_service",
    "intent_service",
    "pricing_service",
    "quote_service",
]
