"""
BillSense AI Backend — Liveness and Health Routes
=================================================

What:  `GET /` liveness probe and `GET /health` dependency report.
Why:   Load balancers need a cheap "is the process up" answer; operators need
       to know whether the database and Gemini are actually reachable.

Status levels for /health:
    - healthy:   database and Gemini both reachable
    - degraded:  database fine, Gemini unavailable or circuit open
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends

from billsense import __version__
from billsense.dependencies import AppContext, get_context
from billsense.schemas.common import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

LIVENESS_MESSAGE = "BillSense AI Backend API is running"

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Liveness probe")
async def root() -> MessageResponse:
    return MessageResponse(message=LIVENESS_MESSAGE)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports database connectivity and Gemini availability.",
)
async def health_check(context: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Probe the database (SELECT 1) and Gemini (list_models or circuit state).

    Never raises: each probe failure is folded into the reported status.
    """
    db_status = "connected"
    gemini_status = "available"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    if not await context.database.ping():
        db_status = "disconnected"
        overall = "unhealthy"

    # ── Gemini ────────────────────────────────────────────────────────────
    breaker = getattr(context.llm, "circuit_breaker", None)
    if breaker is not None and breaker.state == "open":
        gemini_status = "circuit_open"
    elif not await context.llm.health_check():
        gemini_status = "unavailable"

    if gemini_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
