"""Application configuration via pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from typing import Annotated, Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Tee Time Checkout API"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    quote_secret: str = Field(..., alias="QUOTE_SECRET")
    quote_previous_secrets: Annotated[list[str], NoDecode] = Field(
        default_factory=list, alias="QUOTE_PREVIOUS_SECRETS"
    )
    quote_ttl_minutes: int = Field(10, alias="QUOTE_TTL_MINUTES")
    quote_currency: str = Field("USD", alias="QUOTE_CURRENCY")
    quote_tax_rate: Decimal = Field(Decimal("0.16"), alias="QUOTE_TAX_RATE")
    pending_intent_ttl_minutes: int = Field(60, alias="PENDING_INTENT_TTL_MINUTES")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    stripe_publishable_key: str | None = Field(
        default=None, alias="STRIPE_PUBLISHABLE_KEY"
    )
    stripe_secret_key: str | None = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str | None = Field(
        default=None, alias="STRIPE_WEBHOOK_SECRET"
    )
    stripe_offline: bool = Field(default=False, alias="STRIPE_OFFLINE")
    payments_webhook_verify: bool = Field(default=True, alias="PAYMENTS_WEBHOOK_VERIFY")

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:9002",
        ],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allowlist: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ALLOWLIST"
    )

    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_checkout: str = Field("20/minute", alias="RATE_LIMIT_CHECKOUT")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
    )

    @field_validator(
        "cors_allow_origins", "cors_allowlist", "quote_previous_secrets", mode="before"
    )
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("quote_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("quote_tax_rate")
    @classmethod
    def _check_tax_rate(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 1:
            raise ValueError("QUOTE_TAX_RATE must be a fraction in [0, 1)")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
