"""
Prometheus Metrics Module

Counters and latency histograms for session store operations. The host
exposes them with its own /metrics endpoint; generate_metrics() renders
the default registry for hosts that do not.

Outcomes:
- hit / miss: fetch found or did not find a session
- ok: commit, destroy or touch completed
- error: the operation raised
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest


# =============================================================================
# Operation Counter
# =============================================================================

OPERATIONS_TOTAL = Counter(
    name="kvsession_operations_total",
    documentation="Total number of session store operations",
    labelnames=["operation", "outcome"],
)

# =============================================================================
# Operation Latency Histogram
# =============================================================================

OPERATION_DURATION_SECONDS = Histogram(
    name="kvsession_operation_duration_seconds",
    documentation="Session store operation duration in seconds",
    labelnames=["operation"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_operation(operation: str, outcome: str) -> None:
    """
    Record a completed session store operation.

    Args:
        operation: fetch, commit, destroy or touch
        outcome: hit, miss, ok or error
    """
    OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()


@contextmanager
def time_operation(operation: str) -> Generator[None, None, None]:
    """Observe the wall-clock duration of the wrapped block."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        OPERATION_DURATION_SECONDS.labels(operation=operation).observe(
            time.perf_counter() - start_time
        )


def generate_metrics() -> str:
    """
    Generate Prometheus metrics text format.

    Returns:
        Prometheus exposition format text
    """
    return generate_latest(REGISTRY).decode("utf-8")
