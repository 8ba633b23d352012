"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teetime.api import deps
from teetime.core.config import get_settings

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(
    session: AsyncSession = Depends(deps.get_db_session),
) -> dict[str, str]:
    """Return application health metadata."""
    settings = get_settings()
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": settings.app_name,
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.app_env,
        "database": database,
    }
