"""Prometheus metrics, defined in one place.

Other modules import the metric they need and increment it at the point
of action.  Scraped from GET /metrics.

HTTP metrics are labelled by route template ("/v1/progress/courses/{course_id}")
rather than raw path: one label value per course id would grow the series
count without bound.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Store reads are in-memory; the upper buckets catch simulated remote calls
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

STORE_ACTIONS = Counter(
    "store_actions_total",
    "Committed state mutations by store and action",
    ["store", "action"],  # store: "enrollment" | "progress"
)

STORE_OPERATION_FAILURES = Counter(
    "store_operation_failures_total",
    "Async store operations that ended in an error",
    ["operation"],
)

SNAPSHOT_WRITES = Counter(
    "snapshot_writes_total",
    "Persistence snapshot writes by store and result",
    ["store", "result"],  # result: "ok" | "error"
)

ACTIVITY_FEED_SIZE = Gauge(
    "activity_feed_size",
    "Entries currently held in the activity feed",
)
