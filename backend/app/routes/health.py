"""
Blog Backend — Health Check & Root Routes
===========================================

What:  GET /health for monitoring checks and GET / as a welcome banner.
Why:   Load balancers and Docker health checks need an endpoint that tells
       them whether the service can actually serve requests, which means the
       database must be reachable.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (still HTTP 200 so the body is readable;
                 monitors should check the status field)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Welcome message")
async def root() -> MessageResponse:
    return MessageResponse(message="Welcome to the Blog API")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports whether the database is reachable and how long the service has been up.",
)
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

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
