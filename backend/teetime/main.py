"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from secure import Secure
from asgi_correlation_id import CorrelationIdMiddleware, correlation_id
from fastapi_limiter import FastAPILimiter
import redis.asyncio as redis  # type: ignore[import-untyped]

from teetime.api import api_router
from teetime.core.config import get_settings
from teetime.db.session import dispose_engine
from teetime.security.logging_filters import install_sensitive_filter

logger = logging.getLogger(__name__)

settings = get_settings()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allowlist if origin]
if not _ALLOWED_ORIGINS:
    _ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]
if not _ALLOWED_ORIGINS:
    _ALLOWED_ORIGINS = ["http://localhost:3000"]


@asynccontextmanager
async def lifespan(_: FastAPI):
    redis_pool = None
    if settings.redis_url:
        try:
            redis_pool = redis.from_url(
                settings.redis_url, encoding="utf-8", decode_responses=True
            )
            await FastAPILimiter.init(redis_pool)
            setattr(FastAPILimiter, "default_limits", [settings.rate_limit_default])
        except Exception:  # pragma: no cover - limiter startup is best effort
            logger.exception("Failed to initialize rate limiter")
            FastAPILimiter.redis = None
    else:
        logger.info("REDIS_URL not set; checkout rate limiting disabled")
    try:
        yield
    finally:
        if FastAPILimiter.redis is not None:
            try:
                await FastAPILimiter.close()
            except Exception:  # pragma: no cover - limiter shutdown
                logger.exception("Failed to close rate limiter")
            FastAPILimiter.redis = None
        if redis_pool is not None:
            try:
                await redis_pool.aclose()
            except Exception:  # pragma: no cover
                logger.exception("Failed to close redis pool")
        await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID", "Stripe-Signature"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    return response


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({_field_name(tuple(error.get("loc", ()))) for error in exc.errors()})
    detail: dict[str, Any] = {
        "code": "validation_error",
        "message": "Missing or malformed fields",
        "fields": fields,
    }
    cid = correlation_id.get()
    if cid:
        detail["correlation_id"] = cid
    logger.info("Rejected %s %s: %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail}
    )


install_sensitive_filter("uvicorn", "uvicorn.access", "uvicorn.error", "")

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": settings.app_name}
