"""
Health check endpoints
"""

from typing import Any
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from cinema_seats.core.database import get_session
from cinema_seats.core.redis import get_redis
from cinema_seats.config import settings
from cinema_seats.schemas.response import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/live", response_model=HealthResponse)
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return HealthResponse(status="alive", version=settings.APP_VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness(
    db: AsyncSession = Depends(get_session),
    redis_client=Depends(get_redis)
) -> Any:
    """
    Kubernetes readiness probe - checks the seat store and the change feed broker
    """
    checks = {
        "database": False,
        "redis": False,
    }

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")

    try:
        await redis_client.ping()
        checks["redis"] = True
    except Exception as e:
        logger.warning(f"Readiness: redis check failed: {e}")

    return HealthResponse(
        status="ready" if all(checks.values()) else "not ready",
        checks=checks,
        version=settings.APP_VERSION
    )
