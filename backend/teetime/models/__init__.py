"""ORM models package export."""

from teetime.models.booking_intent import BookingIntentStatus, PendingBookingIntent
from teetime.models.coupon import Coupon, CouponDiscountType
from teetime.models.payment import PaymentEvent

__all__ = [
    "BookingIntentStatus",
    "Coupon",
    "CouponDiscountType",
    "PaymentEvent",
    "PendingBookingIntent",
]
