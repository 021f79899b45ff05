"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

EMBEDDING_REQUESTS = Counter(
    "vla_embedding_requests_total",
    "Embedding provider calls",
    labelnames=("provider", "outcome"),
    registry=REGISTRY,
)

EMBEDDING_LATENCY = Histogram(
    "vla_embedding_latency_seconds",
    "Latency of embedding provider calls",
    labelnames=("provider",),
    registry=REGISTRY,
)

QUEUE_ENTRIES = Counter(
    "vla_queue_entries_total",
    "Queue entries resolved by drain calls",
    labelnames=("outcome",),
    registry=REGISTRY,
)

PENDING_ENTRIES = Gauge(
    "vla_pending_entries",
    "Queue entries waiting in pending state",
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "vla_search_latency_seconds",
    "End-to-end similarity search latency",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "EMBEDDING_REQUESTS",
    "EMBEDDING_LATENCY",
    "QUEUE_ENTRIES",
    "PENDING_ENTRIES",
    "SEARCH_LATENCY",
    "metrics_response",
]
