"""Versioned API router."""

from fastapi import APIRouter

from . import checkout, health, payments_webhook

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(checkout.router)
router.include_router(payments_webhook.router)

__all__ = ["router"]
