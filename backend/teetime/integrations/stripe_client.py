"""Stripe SDK wrapper with a deterministic offline mode."""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Any, cast

import stripe

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PaymentIntent:
    """Simplified payment intent payload."""

    id: str
    client_secret: str | None
    status: str
    amount: int
    currency: str
    metadata: dict[str, Any] = field(default_factory=dict)


class StripeClientError(RuntimeError):
    """Raised when Stripe interaction fails."""


class StripeClient:
    """Wrapper around the Stripe SDK.

    With ``offline=True`` no network call is made: intents live in memory and
    ids are generated locally, which keeps local development and the test
    suite independent of Stripe. Offline mode is meant for development and
    tests only; it remembers at most ``offline_store_limit`` intents and drops
    the oldest beyond that.
    """

    def __init__(
        self,
        secret_key: str | None,
        *,
        webhook_secret: str | None = None,
        offline: bool = False,
        idempotency_prefix: str = "teetime",
        offline_store_limit: int = 1000,
    ) -> None:
        if not offline and not secret_key:
            raise StripeClientError("Stripe secret key is not configured")
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._offline = offline
        self._idempotency_prefix = idempotency_prefix
        self._intent_store: dict[str, PaymentIntent] = {}
        self._idempotency_store: dict[str, str] = {}
        self._intent_keys: dict[str, str] = {}
        self._offline_store_limit = max(1, offline_store_limit)

    @property
    def offline(self) -> bool:
        return self._offline

    @property
    def webhook_secret(self) -> str | None:
        return self._webhook_secret

    def _idempotency_key(self, seed: str | None) -> str | None:
        if seed is None:
            return None
        return f"{self._idempotency_prefix}_{seed}"

    @staticmethod
    def _from_sdk(intent: Any) -> PaymentIntent:
        def _get(name: str, default: Any = None) -> Any:
            if isinstance(intent, dict):
                return intent.get(name, default)
            return getattr(intent, name, default)

        metadata = _get("metadata") or {}
        if hasattr(metadata, "to_dict"):
            metadata = metadata.to_dict()
        return PaymentIntent(
            id=str(_get("id")),
            client_secret=cast(str | None, _get("client_secret")),
            status=str(_get("status", "unknown")),
            amount=int(_get("amount") or 0),
            currency=str(_get("currency", "")),
            metadata=dict(cast(dict[str, Any], metadata)),
        )

    def _offline_create(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, Any],
        idempotency_key: str | None,
    ) -> PaymentIntent:
        if idempotency_key and idempotency_key in self._idempotency_store:
            return self._intent_store[self._idempotency_store[idempotency_key]]

        intent_id = f"pi_{uuid.uuid4().hex[:24]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{secrets.token_urlsafe(18)}",
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            metadata=metadata,
        )
        self._intent_store[intent_id] = intent
        if idempotency_key:
            self._idempotency_store[idempotency_key] = intent_id
            self._intent_keys[intent_id] = idempotency_key
        self._evict_offline()
        return intent

    def _evict_offline(self) -> None:
        while len(self._intent_store) > self._offline_store_limit:
            oldest = next(iter(self._intent_store))
            del self._intent_store[oldest]
            key = self._intent_keys.pop(oldest, None)
            if key is not None:
                self._idempotency_store.pop(key, None)

    def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, Any] | None = None,
        customer_email: str | None = None,
        idempotency_seed: str | None = None,
    ) -> PaymentIntent:
        """Authorize ``amount`` minor units of ``currency``."""
        if amount <= 0:
            raise StripeClientError("Payment amount must be positive")
        metadata = {key: str(value) for key, value in (metadata or {}).items()}
        currency = currency.lower()
        idempotency_key = self._idempotency_key(idempotency_seed)

        if self._offline:
            return self._offline_create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                idempotency_key=idempotency_key,
            )

        kwargs: dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if customer_email:
            kwargs["receipt_email"] = customer_email

        try:
            intent = stripe.PaymentIntent.create(
                **kwargs,
                api_key=self._secret_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected payment intent creation: %s", exc)
            raise StripeClientError("Failed to create payment intent") from exc
        return self._from_sdk(intent)

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        if self._offline:
            intent = self._intent_store.get(payment_intent_id)
            if intent is None:
                raise StripeClientError("Payment intent not found")
            return intent
        try:
            intent = stripe.PaymentIntent.retrieve(
                payment_intent_id, api_key=self._secret_key
            )
        except stripe.StripeError as exc:
            raise StripeClientError("Failed to retrieve payment intent") from exc
        return self._from_sdk(intent)

    def construct_event(self, payload: bytes, signature: str) -> Any:
        if not self._webhook_secret:
            raise StripeClientError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self._webhook_secret,
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise StripeClientError("Invalid webhook signature") from exc
