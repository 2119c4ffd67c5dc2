"""
HTTP rate limiting middleware.

Limits requests to the JSON API (`/api/...`) per client IP address. The chat
page, static files, health and metrics endpoints are never limited.
"""

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from socketchat.logging import logger
from socketchat.settings import app_settings
from socketchat.utils.rate_limiter import RateLimiter, rate_limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce rate limits on API requests.

    Uses the in-memory sliding window limiter and answers with
    429 Too Many Requests once a client exceeds the configured limit.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter | None = None):
        """
        Initialize the rate limit middleware.

        Args:
            app: The ASGI application.
            limiter: Limiter to use; defaults to the process-wide one.
        """
        super().__init__(app)
        self.limiter = limiter or rate_limiter
        self.rate_limit = app_settings.API_RATE_LIMIT
        self.window_seconds = app_settings.API_RATE_LIMIT_WINDOW_SECONDS

    async def dispatch(
        self, request: Request, call_next: ASGIApp
    ) -> Response:
        """
        Process the request and enforce rate limits.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            HTTP response, either from the endpoint or a 429 Too Many Requests.
        """
        if not app_settings.RATE_LIMITED_PATHS.match(request.url.path):
            return await call_next(request)

        rate_limit_key = self._get_rate_limit_key(request)
        is_allowed, remaining = self.limiter.check_rate_limit(
            key=rate_limit_key,
            limit=self.rate_limit,
            window_seconds=self.window_seconds,
        )

        if not is_allowed:
            logger.warning(
                f"Rate limit exceeded for {rate_limit_key} "
                f"on {request.method} {request.url.path}"
            )
            return Response(
                content="Too many requests from this IP",
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="text/plain",
                headers={
                    "X-RateLimit-Limit": str(self.rate_limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(self.window_seconds),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.rate_limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response

    def _get_rate_limit_key(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"
