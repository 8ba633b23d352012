"""Checkout error taxonomy shared by services and routers."""

from __future__ import annotations


class CheckoutError(Exception):
    """Base class for checkout failures."""

    code = "checkout_error"


class CheckoutValidationError(CheckoutError, ValueError):
    """Raised when booking or pricing input is missing or malformed."""

    code = "validation_error"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class CouponInvalidError(CheckoutError):
    """Raised when a promo code cannot be redeemed."""

    code = "coupon_invalid"


class QuoteRejectedError(CheckoutError):
    """Raised when a submitted quote may not be redeemed."""

    code = "quote_rejected"


class QuoteExpiredError(QuoteRejectedError):
    code = "quote_expired"


class QuoteInvalidError(QuoteRejectedError):
    code = "quote_invalid"


class IntentCreationFailedError(CheckoutError):
    """Raised when the processor authorization or its bookkeeping fails."""

    code = "intent_creation_failed"


__all__ = [
    "CheckoutError",
    "CheckoutValidationError",
    "CouponInvalidError",
    "IntentCreationFailedError",
    "QuoteExpiredError",
    "QuoteInvalidError",
    "QuoteRejectedError",
]
