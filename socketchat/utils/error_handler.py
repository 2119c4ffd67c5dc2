"""
HTTP exception handlers.

Unknown routes fall back to the chat client page for browsers and to a JSON
404 for everything else; unhandled errors become a JSON 500 that only
carries the exception message outside production.
"""

from fastapi import Request, status
from fastapi.responses import FileResponse, JSONResponse, Response

from socketchat.api.http.pages import index_path
from socketchat.logging import logger
from socketchat.settings import app_settings


def accepts_html(request: Request) -> bool:
    accept = request.headers.get("accept", "*/*")
    return "text/html" in accept or "*/*" in accept


async def not_found_handler(request: Request, exc: Exception) -> Response:
    """
    Fallback for unmatched routes.

    Args:
        request: The unmatched request.
        exc: The 404 raised by routing.

    Returns:
        index.html for clients that accept HTML, otherwise a JSON 404.
    """
    path = index_path()
    if path is not None and request.method == "GET" and accepts_html(request):
        return FileResponse(path, media_type="text/html")

    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not found"}
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.error(
        f"Server error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    error = (
        "Internal server error"
        if app_settings.ENVIRONMENT == "production"
        else str(exc)
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": error},
    )
