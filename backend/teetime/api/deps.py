"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.core.config import get_settings
from teetime.core.security import SigningKeyProvider, signing_keys_from_settings
from teetime.core.settings import get_payment_settings
from teetime.db.session import get_session
from teetime.integrations import StripeClient, StripeClientError


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


@lru_cache
def _build_stripe_client() -> StripeClient:
    settings = get_payment_settings()
    return StripeClient(
        settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        offline=settings.stripe_offline,
    )


def get_stripe_client() -> StripeClient:
    """Return the process-wide Stripe client."""
    try:
        return _build_stripe_client()
    except StripeClientError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not configured",
        ) from exc


@lru_cache
def get_signing_keys() -> SigningKeyProvider:
    """Return the quote signing keys from configuration."""
    return signing_keys_from_settings()


def reset_dependency_caches() -> None:
    _build_stripe_client.cache_clear()
    get_signing_keys.cache_clear()


_SECONDS = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    """Parse ``"20/minute"`` into ``(times, seconds)``."""
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    seconds = _SECONDS.get(window_str.strip().lower(), fallback[1])
    return count, seconds


def rate_limit(limit: tuple[int, int]):
    """Rate limit dependency that is a no-op when Redis is not initialised."""

    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


CHECKOUT_RATE_LIMIT = rate_limit(
    parse_rate(get_settings().rate_limit_checkout, fallback=(20, 60))
)
