"""
Health check endpoints for monitoring and container orchestration.

``/health`` reports every backing component, ``/health/ready`` gates traffic
on the database only (Redis loss degrades idempotency to per-process
memory, it does not stop the portal).
"""
import time
from typing import Any

import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.api.errors import build_error_payload
from partner_portal.core.config import settings
from partner_portal.core.database import get_db
from partner_portal.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["health"])

_OK_STATES = ("healthy", "unconfigured")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


async def _check_database(session: AsyncSession) -> dict[str, Any]:
    start = time.perf_counter()
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health_db_error", error=str(e))
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start), "detail": str(e)}
    return {"status": "healthy", "latency_ms": _elapsed_ms(start)}


async def _check_redis() -> dict[str, Any]:
    start = time.perf_counter()
    try:
        conn = redis.from_url(settings.REDIS_URL)
        await conn.ping()
        await conn.aclose()
    except (RedisError, OSError) as e:
        logger.warning("health_redis_error", error=str(e))
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start), "detail": str(e)}
    return {"status": "healthy", "latency_ms": _elapsed_ms(start)}


def _check_docuseal() -> dict[str, Any]:
    # Config only; templates are created on demand so there is nothing to ping
    return {"status": "healthy" if settings.DOCUSEAL_API_KEY else "unconfigured"}


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_db)):
    start_time = time.perf_counter()
    components = {
        "database": await _check_database(session),
        "redis": await _check_redis(),
        "docuseal": _check_docuseal(),
    }
    is_healthy = all(c["status"] in _OK_STATES for c in components.values())

    return {
        "status": "healthy" if is_healthy else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "components": components,
        "total_latency_ms": _elapsed_ms(start_time),
    }


@router.get("/health/ready")
async def readiness_check(session: AsyncSession = Depends(get_db)):
    database = await _check_database(session)
    if database["status"] != "healthy":
        raise HTTPException(
            status_code=503,
            detail=build_error_payload(
                code="readiness_failed",
                message="Database unavailable",
                detail=database.get("detail"),
            ),
        )
    return {"status": "ready", "database": "connected"}


@router.get("/health/live")
async def liveness_check():
    """Liveness check - the process is up."""
    return {"status": "alive"}
