"""
Tests for the in-memory rate limiter and RateLimitMiddleware.

This module tests the sliding window, the enabled/disabled states, which
paths are limited, and the 429 response.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient

from socketchat.middlewares.rate_limit import RateLimitMiddleware
from socketchat.utils.rate_limiter import RateLimiter


@pytest.fixture
def mock_request():
    """
    Provides a mock Request object for an API path.

    Returns:
        MagicMock: Mocked request
    """
    request = MagicMock(spec=Request)
    request.url = MagicMock()
    request.url.path = "/api/users"
    request.method = "GET"
    request.client = MagicMock()
    request.client.host = "127.0.0.1"
    return request


@pytest.fixture
def mock_call_next():
    """
    Provides a mock call_next function.

    Returns:
        AsyncMock: Mocked call_next function
    """

    async def call_next(request):
        return Response(content="OK", status_code=200)

    return AsyncMock(side_effect=call_next)


class TestRateLimiter:
    """Tests for RateLimiter class."""

    def test_allows_up_to_limit(self):
        """Test requests are allowed until the limit is reached."""
        limiter = RateLimiter(enabled=True)

        results = [limiter.check_rate_limit("ip:1", limit=3) for _ in range(4)]

        assert results == [(True, 2), (True, 1), (True, 0), (False, 0)]

    def test_keys_are_independent(self):
        """Test one client's usage does not affect another's."""
        limiter = RateLimiter(enabled=True)
        limiter.check_rate_limit("ip:1", limit=1)

        assert limiter.check_rate_limit("ip:1", limit=1) == (False, 0)
        assert limiter.check_rate_limit("ip:2", limit=1) == (True, 0)

    def test_window_slides(self):
        """Test old requests stop counting once outside the window."""
        limiter = RateLimiter(enabled=True)

        with patch("socketchat.utils.rate_limiter.time.monotonic") as clock:
            clock.return_value = 1000.0
            limiter.check_rate_limit("ip:1", limit=2, window_seconds=60)
            clock.return_value = 1030.0
            limiter.check_rate_limit("ip:1", limit=2, window_seconds=60)
            assert limiter.check_rate_limit(
                "ip:1", limit=2, window_seconds=60
            ) == (False, 0)

            clock.return_value = 1061.0
            assert limiter.check_rate_limit(
                "ip:1", limit=2, window_seconds=60
            ) == (True, 0)

    def test_idle_keys_are_dropped(self):
        """Test clients idle for a full window no longer hold an entry."""
        limiter = RateLimiter(enabled=True)

        with patch("socketchat.utils.rate_limiter.time.monotonic") as clock:
            clock.return_value = 1000.0
            limiter.check_rate_limit("ip:1", limit=5, window_seconds=60)
            limiter.check_rate_limit("ip:2", limit=5, window_seconds=60)
            clock.return_value = 1030.0
            limiter.check_rate_limit("ip:3", limit=5, window_seconds=60)

            clock.return_value = 1061.0
            limiter.check_rate_limit("ip:2", limit=5, window_seconds=60)

        assert sorted(limiter.requests) == ["ip:2", "ip:3"]
        assert len(limiter.requests["ip:2"]) == 1

    def test_rejected_requests_are_not_recorded(self):
        """Test a rejected request does not extend the client's window."""
        limiter = RateLimiter(enabled=True)
        limiter.check_rate_limit("ip:1", limit=1)

        limiter.check_rate_limit("ip:1", limit=1)
        limiter.check_rate_limit("ip:1", limit=1)

        assert len(limiter.requests["ip:1"]) == 1

    def test_disabled(self):
        """Test a disabled limiter allows everything."""
        limiter = RateLimiter(enabled=False)

        for _ in range(5):
            assert limiter.check_rate_limit("ip:1", limit=1) == (True, 1)

        assert limiter.requests == {}

    def test_reset_limit(self):
        """Test resetting a key clears its history."""
        limiter = RateLimiter(enabled=True)
        limiter.check_rate_limit("ip:1", limit=1)

        limiter.reset_limit("ip:1")
        limiter.reset_limit("ip:unknown")

        assert limiter.check_rate_limit("ip:1", limit=1) == (True, 0)


class TestRateLimitMiddleware:
    """Tests for RateLimitMiddleware dispatch."""

    @pytest.mark.asyncio
    async def test_allowed_request_gets_headers(
        self, mock_request, mock_call_next
    ):
        """Test allowed API requests carry the rate limit headers."""
        middleware = RateLimitMiddleware(
            FastAPI(), limiter=RateLimiter(enabled=True)
        )
        middleware.rate_limit = 5

        response = await middleware.dispatch(mock_request, mock_call_next)

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"

    @pytest.mark.asyncio
    async def test_limit_exceeded(self, mock_request, mock_call_next):
        """Test requests over the limit get a 429 without reaching the app."""
        middleware = RateLimitMiddleware(
            FastAPI(), limiter=RateLimiter(enabled=True)
        )
        middleware.rate_limit = 1
        middleware.window_seconds = 900

        await middleware.dispatch(mock_request, mock_call_next)
        response = await middleware.dispatch(mock_request, mock_call_next)

        assert response.status_code == 429
        assert response.body == b"Too many requests from this IP"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["Retry-After"] == "900"
        assert mock_call_next.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/health", "/metrics", "/static/a.js"])
    async def test_unlimited_paths(self, mock_request, mock_call_next, path):
        """Test only the JSON API is rate limited."""
        limiter = RateLimiter(enabled=True)
        middleware = RateLimitMiddleware(FastAPI(), limiter=limiter)
        middleware.rate_limit = 1
        mock_request.url.path = path

        for _ in range(3):
            response = await middleware.dispatch(mock_request, mock_call_next)
            assert response.status_code == 200

        assert "X-RateLimit-Limit" not in response.headers
        assert limiter.requests == {}

    @pytest.mark.asyncio
    async def test_unknown_client(self, mock_request, mock_call_next):
        """Test requests without a client address share one key."""
        limiter = RateLimiter(enabled=True)
        middleware = RateLimitMiddleware(FastAPI(), limiter=limiter)
        mock_request.client = None

        await middleware.dispatch(mock_request, mock_call_next)

        assert list(limiter.requests) == ["ip:unknown"]

    def test_api_limit_in_app(self, monkeypatch):
        """Test the application answers 429 once the API limit is used up."""
        from socketchat import application
        from socketchat.settings import app_settings
        from socketchat.utils.rate_limiter import rate_limiter

        monkeypatch.setattr(rate_limiter, "enabled", True)
        monkeypatch.setattr(app_settings, "API_RATE_LIMIT", 2)

        with TestClient(application()) as client:
            statuses = [client.get("/api/users").status_code for _ in range(3)]
            health = client.get("/health")

        assert statuses == [200, 200, 429]
        assert health.status_code == 200
