"""
Heritage Numérique Backend — Health Check Route
================================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports the translation
       circuit breaker state without calling the provider.

Status levels:
    - healthy:   database reachable, translation circuit closed
    - degraded:  database reachable, translation circuit open or half open
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from heritage import __version__
from heritage.database import engine
from heritage.schemas.common import HealthResponse
from heritage.services.translation_service import CircuitBreaker, translation_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    translation_status = translation_service.circuit_breaker.state
    if translation_status != CircuitBreaker.CLOSED and overall == "healthy":
        overall = "degraded"

    report = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        translation=translation_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=report.model_dump())
    return report
