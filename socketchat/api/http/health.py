"""Health check endpoint for the hosting platform's liveness probe."""

import time

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

from socketchat.utils.timestamps import iso_now

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    uptime: float
    active_users: int = Field(serialization_alias="activeUsers")


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(request: Request) -> HealthResponse:
    """
    Report that the process is up, for how long, and how many users are online.

    The chat server keeps no external dependencies, so it is healthy whenever
    it can answer.

    Returns:
        HealthResponse: Status, current time, uptime in seconds and the
        number of connected sessions.
    """
    state = request.app.state
    return HealthResponse(
        status="healthy",
        timestamp=iso_now(),
        uptime=round(time.monotonic() - state.started_at, 3),
        active_users=state.broadcast_router.registry.count(),
    )
