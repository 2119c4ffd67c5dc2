"""Chat client page."""

import os

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from socketchat.settings import app_settings

router = APIRouter()


def index_path() -> str | None:
    """Path of the client's index.html, or None when it is not shipped."""
    path = os.path.join(app_settings.STATIC_DIR, "index.html")
    return path if os.path.isfile(path) else None


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    path = index_path()
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(path, media_type="text/html")
