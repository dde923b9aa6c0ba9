"""
Prometheus metrics for the key activation service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# Key lifecycle metrics
keys_created_total = Counter(
    "keys_created_total",
    "Total activation keys created",
    ["source"],
)

keys_deleted_total = Counter(
    "keys_deleted_total",
    "Total activation keys deleted explicitly",
)

keys_swept_total = Counter(
    "keys_swept_total",
    "Total expired activation keys removed by the expiry sweep",
)

# Verification metrics
key_verifications_total = Counter(
    "key_verifications_total",
    "Total key verifications by outcome",
    ["outcome"],
)

devices_bound_total = Counter(
    "devices_bound_total",
    "Total devices newly bound to a key",
)

# Store metrics
store_operation_duration_seconds = Histogram(
    "key_store_operation_duration_seconds",
    "Key store load/save duration in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total failed operations",
    ["error_kind", "operation"],
)
