"""
Prometheus metrics for the chat server.

Metrics are looked up in the default registry before being created so that
importing this module twice (uvicorn --reload, test re-imports) does not
raise duplicate registration errors.
"""

from typing import Any, TypeVar

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

MetricType = TypeVar("MetricType", Counter, Gauge, Histogram)


def _get_or_create(
    metric_cls: type[MetricType],
    name: str,
    doc: str,
    labels: list[str] | None = None,
    **kwargs: Any,
) -> MetricType:
    """
    Get existing metric or create new one.

    Args:
        metric_cls: Counter, Gauge or Histogram.
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.
        **kwargs: Extra constructor arguments (e.g. histogram buckets).

    Returns:
        Metric instance.
    """
    try:
        return metric_cls(name, doc, labels or [], **kwargs)
    except ValueError:
        # Metric already exists, retrieve it from registry
        return REGISTRY._names_to_collectors[name]


# WebSocket connection metrics
ws_connections_active = _get_or_create(
    Gauge, "chat_ws_connections_active", "Number of open chat connections"
)

ws_connections_total = _get_or_create(
    Counter,
    "chat_ws_connections_total",
    "Total chat connections by outcome",
    ["status"],  # accepted, rejected
)

ws_disconnects_total = _get_or_create(
    Counter,
    "chat_ws_disconnects_total",
    "Total chat disconnects by reason",
    ["reason"],
)

# Message metrics
ws_messages_received_total = _get_or_create(
    Counter,
    "chat_ws_messages_received_total",
    "Total inbound chat events",
    ["event"],
)

ws_messages_rejected_total = _get_or_create(
    Counter,
    "chat_ws_messages_rejected_total",
    "Inbound frames rejected as malformed or unknown",
)

ws_messages_sent_total = _get_or_create(
    Counter,
    "chat_ws_messages_sent_total",
    "Total outbound frames written to sockets",
)

ws_event_processing_duration_seconds = _get_or_create(
    Histogram,
    "chat_ws_event_processing_duration_seconds",
    "Chat event handler duration in seconds",
    ["event"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)
