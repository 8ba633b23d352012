"""Stripe webhook receiver that settles pending booking intents."""

from __future__ import annotations

import json
import logging
from typing import Any, cast
from uuid import uuid4

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.api import deps
from teetime.core.config import get_settings
from teetime.core.settings import get_payment_settings
from teetime.integrations import StripeClient, StripeClientError
from teetime.models import PaymentEvent
from teetime.services import booking_intent_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments-webhook"])


async def _claim_event(
    session: AsyncSession, event_id: str, event_type: str, payload: dict[str, Any]
) -> bool:
    """Insert the event row ahead of any state change.

    The row commits together with the booking transition, so a delivery that
    loses the race on the unique event id applies nothing.
    """
    session.add(
        PaymentEvent(provider_event_id=event_id, event_type=event_type, raw=payload)
    )
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        return False
    return True


async def process_event(
    session: AsyncSession,
    payload: dict[str, Any],
) -> dict[str, Any]:
    """Apply one processor event to the booking intent it references."""

    event_id = str(payload.get("id") or uuid4())
    event_type = str(payload.get("type", ""))
    data_object = (payload.get("data") or {}).get("object") or {}

    if not await _claim_event(session, event_id, event_type, payload):
        logger.info("Ignoring duplicate payment event %s", event_id)
        return {"status": "duplicate"}

    status_payload = "ignored"
    if event_type == "payment_intent.succeeded":
        intent = await booking_intent_service.mark_confirmed(
            session, str(data_object.get("id", ""))
        )
        status_payload = "processed" if intent is not None else "unknown_intent"

    elif event_type == "payment_intent.payment_failed":
        reason = (data_object.get("last_payment_error") or {}).get("message")
        intent = await booking_intent_service.mark_failed(
            session, str(data_object.get("id", "")), reason=reason
        )
        status_payload = "processed" if intent is not None else "unknown_intent"

    else:
        logger.debug("Unhandled payment event type %s", event_type)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return {"status": "duplicate"}
    return {"status": status_payload}


@router.post("/webhook", status_code=status.HTTP_200_OK)
async def handle_webhook(
    request: Request,
    session: AsyncSession = Depends(deps.get_db_session),
    stripe_client: StripeClient = Depends(deps.get_stripe_client),
) -> dict[str, Any]:
    settings = get_payment_settings()
    payload_bytes = await request.body()
    payload: dict[str, Any]

    if settings.payments_webhook_verify:
        signature = request.headers.get("Stripe-Signature")
        if not signature:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing signature header",
            )
        try:
            event = stripe_client.construct_event(payload_bytes, signature)
        except StripeClientError as exc:
            logger.warning("Rejected webhook: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        if hasattr(event, "to_dict_recursive"):
            payload = cast(dict[str, Any], event.to_dict_recursive())
        elif hasattr(event, "to_dict"):
            payload = cast(dict[str, Any], event.to_dict())
        else:
            payload = cast(dict[str, Any], event)
    else:
        try:
            payload = json.loads(payload_bytes)
        except json.JSONDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload"
            ) from exc

    return await process_event(session, payload)


@router.post("/dev/simulate-webhook", status_code=status.HTTP_200_OK)
async def simulate_webhook(
    payload: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(deps.get_db_session),
) -> dict[str, Any]:
    settings = get_settings()
    if settings.app_env.lower() != "local":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Simulation route available in local environment only",
        )

    enriched_payload = dict(payload)
    enriched_payload.setdefault("id", f"simulated_{uuid4().hex}")
    return await process_event(session, enriched_payload)
