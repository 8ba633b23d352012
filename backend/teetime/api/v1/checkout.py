"""Checkout endpoints: signed quotes and payment intent creation."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.api import deps
from teetime.core.errors import (
    CheckoutValidationError,
    IntentCreationFailedError,
    QuoteRejectedError,
)
from teetime.core.security import SigningKeyProvider
from teetime.core.settings import get_quote_settings
from teetime.integrations import StripeClient
from teetime.schemas.checkout import (
    BookingIntentRead,
    IntentCreateRequest,
    IntentCreateResponse,
    QuoteRead,
    QuoteRequest,
)
from teetime.services import (
    booking_intent_service,
    intent_service,
    pricing_service,
    quote_service,
)
from teetime.services.intent_service import BookingParams
from teetime.services.quote_service import PriceQuote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


def _validation_error(exc: CheckoutValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": exc.code, "message": str(exc), "fields": exc.fields},
    )


@router.post(
    "/quote",
    response_model=QuoteRead,
    summary="Price a tee time and return a signed quote",
    dependencies=[deps.CHECKOUT_RATE_LIMIT],
)
async def create_quote(
    payload: QuoteRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    keys: Annotated[SigningKeyProvider, Depends(deps.get_signing_keys)],
) -> QuoteRead:
    settings = get_quote_settings()
    now = datetime.now(UTC)
    try:
        pricing = await pricing_service.compute_pricing(
            session,
            base_price=payload.base_price,
            promo_code=payload.promo_code,
            settings=settings,
            now=now,
        )
    except CheckoutValidationError as exc:
        raise _validation_error(exc) from exc

    expires_at = quote_service.quote_expiry(
        now, timedelta(minutes=settings.ttl_minutes)
    )
    quote = quote_service.issue_quote(pricing, expires_at, keys=keys)
    logger.debug(
        "Issued quote for course %s: %s %s",
        payload.course_id,
        quote.total_cents,
        quote.currency,
    )
    return QuoteRead.model_validate(quote.to_dict())


@router.post(
    "/create-intent",
    response_model=IntentCreateResponse,
    summary="Redeem a quote into a payment intent",
    dependencies=[deps.CHECKOUT_RATE_LIMIT],
)
async def create_payment_intent(
    payload: IntentCreateRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    keys: Annotated[SigningKeyProvider, Depends(deps.get_signing_keys)],
    stripe_client: Annotated[StripeClient, Depends(deps.get_stripe_client)],
) -> IntentCreateResponse:
    now = datetime.now(UTC)
    submitted = PriceQuote(
        currency=payload.currency,
        tax_rate=payload.tax_rate,
        subtotal_cents=payload.subtotal_cents,
        discount_cents=payload.discount_cents,
        tax_cents=payload.tax_cents,
        total_cents=payload.total_cents,
        expires_at=payload.expires_at,
        quote_hash=payload.quote_hash,
        promo_code=payload.promo_code,
    )
    try:
        verified = quote_service.verify_quote(submitted, keys=keys, now=now)
    except QuoteRejectedError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc

    booking = BookingParams(
        course_id=payload.course_id,
        date=payload.date,
        time=payload.time,
        players=payload.players,
        holes=payload.holes,
        guest_email=payload.guest_email,
        guest_name=payload.guest_name,
    )
    try:
        issued = await intent_service.create_intent(
            session,
            booking=booking,
            quote=verified,
            stripe=stripe_client,
            now=now,
        )
    except CheckoutValidationError as exc:
        raise _validation_error(exc) from exc
    except IntentCreationFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc

    return IntentCreateResponse.model_validate(
        {
            "client_secret": issued.client_secret,
            "payment_intent_id": issued.payment_intent_id,
            "pricing_snapshot": issued.pricing_snapshot,
        }
    )


@router.get(
    "/intents/{payment_intent_id}",
    response_model=BookingIntentRead,
    summary="Fetch a pending or confirmed booking intent",
)
async def get_booking_intent(
    payment_intent_id: str,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> BookingIntentRead:
    intent = await booking_intent_service.get_intent(session, payment_intent_id)
    if intent is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking intent not found"
        )
    return BookingIntentRead.model_validate(intent)
