"""
In-memory rate limiter using a sliding window.

The chat server runs as a single process with no shared storage, so request
timestamps are kept per key in process memory.
"""

import time
from collections import deque

from socketchat.settings import app_settings


class RateLimiter:
    """
    Sliding window rate limiter.

    Tracks request timestamps per key (e.g. client IP) and enforces a maximum
    number of requests within a time window. Keys with no request inside
    the window are swept once per window, so idle clients do not accumulate.
    """

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = (
            app_settings.RATE_LIMIT_ENABLED if enabled is None else enabled
        )
        self.requests: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def check_rate_limit(
        self, key: str, limit: int, window_seconds: int = 60
    ) -> tuple[bool, int]:
        """
        Check and record a request against the limit for `key`.

        Args:
            key: Unique identifier for the rate limit (e.g. "ip:1.2.3.4").
            limit: Maximum number of requests allowed in the window.
            window_seconds: Time window in seconds (default: 60).

        Returns:
            Tuple of (is_allowed, remaining_requests).
        """
        if not self.enabled:
            return True, limit

        now = time.monotonic()
        window_start = now - window_seconds

        if now - self._last_sweep >= window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        timestamps = self.requests.setdefault(key, deque())
        # Remove old entries outside the time window
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= limit:
            return False, 0

        timestamps.append(now)
        return True, limit - len(timestamps)

    def reset_limit(self, key: str) -> None:
        self.requests.pop(key, None)

    def _sweep(self, window_start: float) -> None:
        stale = [
            key
            for key, timestamps in self.requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for key in stale:
            del self.requests[key]


rate_limiter = RateLimiter()
