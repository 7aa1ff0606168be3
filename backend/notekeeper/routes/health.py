"""
NoteKeeper Backend — Health Check Route
=========================================

What:  GET /health for monitoring and load balancer probes.
How:   Pings the database through the handle on app.state and reports
       uptime. Answers 503 when the database is unreachable so that load
       balancers stop routing traffic to this instance.
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from notekeeper import __version__
from notekeeper.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db = request.app.state.db
    if await db.ping():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "unhealthy"
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
