"""
Timestamp helpers shared by the registry, the event payloads and the HTTP API.

All stored timestamps are timezone-aware UTC datetimes. On the wire they are
rendered as ISO-8601 strings with millisecond precision and a `Z` suffix,
matching what browser clients produce with `Date.toISOString()`.
"""

import time
from datetime import datetime, timezone

from socketchat.settings import app_settings


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """
    Render a datetime as an ISO-8601 UTC string.

    Naive datetimes are assumed to already be in UTC.

    Example:
        >>> to_iso(datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc))
        '2026-10-19T10:30:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def iso_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return to_iso(utc_now())


def local_time() -> str:
    """Current local wall-clock time formatted for display in chat."""
    return datetime.now().strftime(app_settings.TIME_FORMAT)


def epoch_millis() -> int:
    """Milliseconds since the Unix epoch, used by latency probes."""
    return int(time.time() * 1000)
