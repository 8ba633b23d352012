"""Test fixtures for the tee time checkout backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("QUOTE_SECRET", "test-quote-secret")
os.environ.setdefault("STRIPE_OFFLINE", "true")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("APP_ENV", "local")

from teetime.api.deps import reset_dependency_caches
from teetime.core.config import get_settings
from teetime.core.security import StaticSigningKeys
from teetime.db.base import Base
from teetime.db.session import dispose_engine, get_sessionmaker
from teetime.integrations import StripeClient
from teetime.main import app
from teetime.models import Coupon, CouponDiscountType

SeedCoupon = Callable[..., Awaitable[None]]


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture()
def signing_keys() -> StaticSigningKeys:
    return StaticSigningKeys(os.environ["QUOTE_SECRET"])


@pytest.fixture()
def stripe_client() -> StripeClient:
    return StripeClient(None, offline=True)


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()
    reset_dependency_caches()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest.fixture()
def seed_coupon(db_url: str) -> SeedCoupon:
    """Return a helper that stores one coupon."""

    async def _seed(
        code: str,
        *,
        discount_type: CouponDiscountType = CouponDiscountType.PERCENTAGE,
        value: Decimal = Decimal("20"),
        **overrides: Any,
    ) -> None:
        fields: dict[str, Any] = {
            "expires_at": datetime.now(UTC) + timedelta(days=30),
            "usage_limit": None,
            "times_used": 0,
            "active": True,
        }
        fields.update(overrides)
        async with get_sessionmaker(db_url)() as session:
            session.add(
                Coupon(
                    code=code,
                    discount_type=discount_type,
                    discount_value=value,
                    **fields,
                )
            )
            await session.commit()

    return _seed


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], seed_coupon: SeedCoupon
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus a seeded promo code."""
    await seed_coupon("SAVE20")

    context: dict[str, object] = {"promo_code": "SAVE20"}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
