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

LOOKUP_COUNT = Counter(
    "hoverlookup_lookups_total",
    "Total lookup resolutions",
    labelnames=("mode", "outcome"),
    registry=REGISTRY,
)

LOOKUP_LATENCY = Histogram(
    "hoverlookup_lookup_latency_seconds",
    "Latency of lookup resolutions",
    labelnames=("mode",),
    registry=REGISTRY,
)

REMOTE_QUERY_ERRORS = Counter(
    "hoverlookup_remote_query_errors_total",
    "Failed per-collection remote queries",
    labelnames=("database", "collection"),
    registry=REGISTRY,
)

CACHE_ENTRIES = Gauge(
    "hoverlookup_cache_entries",
    "Number of entries held in the remote result cache",
    registry=REGISTRY,
)

LOCAL_INDEX_SIZE = Gauge(
    "hoverlookup_local_index_keys",
    "Number of keys in the local index",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "LOOKUP_COUNT",
    "LOOKUP_LATENCY",
    "REMOTE_QUERY_ERRORS",
    "CACHE_ENTRIES",
    "LOCAL_INDEX_SIZE",
    "metrics_response",
]
