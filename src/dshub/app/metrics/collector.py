"""Prometheus metrics definitions for datastore lifecycle operations."""

from prometheus_client import Counter, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================

# MEDIUM: single gateway calls (5ms ~ 60s)
_BUCKETS_MEDIUM = (
    0.005, 0.01, 0.02, 0.04, 0.09,
    0.18, 0.36, 0.73, 1.5, 3,
    6.2, 12.7, 26, 53,
)  # 14 buckets

# SLOW: whole resource operations incl. convergence loops (100ms ~ 600s)
_BUCKETS_SLOW = (
    0.1, 0.2, 0.39, 0.77, 1.5,
    3, 6, 12, 23, 46,
    91, 180, 360, 600,
)  # 14 buckets


# =============================================================================
# Resource operation metrics
# =============================================================================

DATASTORE_OPERATION_TOTAL = Counter(
    "dshub_datastore_operation_total",
    "Total datastore resource operations",
    ["operation", "status"],  # create/read/update/delete/import, success/error
)

DATASTORE_OPERATION_DURATION = Histogram(
    "dshub_datastore_operation_duration_seconds",
    "Duration of datastore resource operations",
    ["operation"],
    buckets=_BUCKETS_SLOW,
)

GATEWAY_CALL_DURATION = Histogram(
    "dshub_gateway_call_duration_seconds",
    "Duration of mutating gateway calls",
    ["call"],  # create, extend, remove
    buckets=_BUCKETS_MEDIUM,
)


# =============================================================================
# Provisioning compensation metrics
# =============================================================================
# outcome=rolled_back: the created datastore was removed again
# outcome=dangling: removal failed too, manual cleanup required

COMPENSATION_TOTAL = Counter(
    "dshub_compensation_total",
    "Compensating removals attempted after a failed provisioning step",
    ["step", "outcome"],
)


# =============================================================================
# Convergence loop metrics
# =============================================================================

CONVERGE_RESULT_TOTAL = Counter(
    "dshub_converge_result_total",
    "Convergence loop results",
    ["loop", "state"],  # delete_retry/delete_wait, completed/error/timeout
)

CONVERGE_ATTEMPTS = Histogram(
    "dshub_converge_attempts",
    "Refresh attempts per convergence loop run",
    ["loop"],
    buckets=(1, 2, 3, 5, 8, 13, 21, 34, 55),
)
