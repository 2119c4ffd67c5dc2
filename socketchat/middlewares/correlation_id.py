"""
Middleware for request correlation ID tracking.

HTTP requests get their correlation ID from the X-Correlation-ID header (or a
fresh one); WebSocket connections set it from their session ID so every log
line written while handling that connection can be traced back to it.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from socketchat.constants import CORRELATION_ID_LENGTH

# Context variable for storing correlation ID per request / connection
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to HTTP requests.

    This middleware:
    - Extracts correlation ID from X-Correlation-ID header or generates new 8-char UUID
    - Limits all correlation IDs to 8 characters for consistency
    - Stores correlation ID in request.state.request_id
    - Stores correlation ID in context variable for logging
    - Adds correlation ID to response headers for client tracking
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Process request and add correlation ID.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            Response with X-Correlation-ID header added.
        """
        cid = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        cid = cid[:CORRELATION_ID_LENGTH]

        request.state.request_id = cid
        correlation_id.set(cid)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid

        return response


def set_correlation_id(value: str) -> None:
    """Bind a correlation ID to the current context (e.g. a WebSocket session)."""
    correlation_id.set(value[:CORRELATION_ID_LENGTH])


def get_correlation_id() -> str:
    """
    Get the correlation ID for the current request context.

    Returns:
        The correlation ID string, or empty string if not set.
    """
    return correlation_id.get()
