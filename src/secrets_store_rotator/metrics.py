"""Prometheus metrics for the secrets-store rotation controller."""

from prometheus_client import Counter, Gauge, Histogram

# Rotation reconcile metrics
rotation_reconcile_total = Counter(
    "secrets_store_rotation_reconcile_total",
    "Total number of rotation reconciles",
    ["provider", "rotated"],
)

rotation_reconcile_error_total = Counter(
    "secrets_store_rotation_reconcile_error_total",
    "Total number of rotation reconciles with error",
    ["provider", "error_type", "rotated"],
)

rotation_reconcile_duration_seconds = Histogram(
    "secrets_store_rotation_reconcile_duration_seconds",
    "Duration of successful rotation reconciles in seconds",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 5.0, 10.0, 15.0, 30.0],
)

# Work queue metrics
queue_depth = Gauge(
    "secrets_store_rotation_queue_depth",
    "Number of keys waiting in the rotation work queue",
)

queue_requeues_total = Counter(
    "secrets_store_rotation_queue_requeues_total",
    "Total number of keys re-queued after a failed reconcile",
    ["policy"],
)

# API call metrics
api_call_total = Counter(
    "secrets_store_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "secrets_store_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "secrets_store_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
