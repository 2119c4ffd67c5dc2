"""Server status endpoint: version, environment and process metadata."""

import os
import resource
import sys
import time

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from socketchat.settings import app_settings
from socketchat.utils.timestamps import iso_now

router = APIRouter(prefix="/api", tags=["status"])


class MemoryUsage(BaseModel):
    rss: int
    max_rss: int = Field(serialization_alias="maxRss")


class StatusResponse(BaseModel):
    success: bool = True
    status: str = "running"
    version: str
    timestamp: str
    uptime: float
    memory: MemoryUsage
    active_connections: int = Field(serialization_alias="activeConnections")
    environment: str


def max_rss_bytes() -> int:
    """Peak resident set size of this process in bytes."""
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    return usage if sys.platform == "darwin" else usage * 1024


def rss_bytes() -> int:
    """Current resident set size in bytes, or the peak where /proc is absent."""
    try:
        with open("/proc/self/statm") as statm:
            resident_pages = int(statm.read().split()[1])
    except (OSError, IndexError, ValueError):
        return max_rss_bytes()
    return resident_pages * os.sysconf("SC_PAGE_SIZE")


@router.get(
    "/status",
    response_model=StatusResponse,
    response_model_by_alias=True,
    summary="Server status",
)
async def server_status(request: Request) -> StatusResponse:
    state = request.app.state
    return StatusResponse(
        version=app_settings.APP_VERSION,
        timestamp=iso_now(),
        uptime=round(time.monotonic() - state.started_at, 3),
        memory=MemoryUsage(rss=rss_bytes(), max_rss=max_rss_bytes()),
        active_connections=state.broadcast_router.registry.count(),
        environment=app_settings.ENVIRONMENT,
    )
