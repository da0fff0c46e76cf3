"""
PhotoMemo Backend: Health Check Routes
======================================

GET /        plain-text liveness probe ("PhotoMemo API OK")
GET /health  dependency report for monitoring

Status levels for /health:
    - healthy:   database reachable and storage configured
    - degraded:  database reachable, no bucket configured
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import text

from photomemo import __version__
from photomemo.database import engine
from photomemo.schemas.common import HealthResponse
from photomemo.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness probe")
async def root() -> str:
    return "PhotoMemo API OK"


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    storage_status = "configured" if storage_service.is_configured else "unconfigured"
    if storage_status == "unconfigured" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
