"""
Posts API — Welcome & Health Check Routes
==========================================

What:  GET / (welcome banner) and GET /health (monitoring probe).
How:   /health runs `SELECT 1` through the application's Database handle.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from posts_api import __version__
from posts_api.database import Database, get_database
from posts_api.schemas.post import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Welcome message")
async def index() -> MessageResponse:
    return MessageResponse(
        message="Welcome to the Posts API! API documentation is available at /docs."
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    database: Database = Depends(get_database),
) -> HealthResponse:
    """Probe the database and report aggregate status plus uptime."""
    db_status = "connected"
    overall = "healthy"

    if not await database.ping():
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
