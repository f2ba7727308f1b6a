"""
Observability Package

- Structured JSON logging (structlog)
- Prometheus metrics for store operations (prometheus-client)
"""

from kvsession.observability.logging import (
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)

from kvsession.observability.metrics import (
    generate_metrics,
    record_operation,
    time_operation,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Metrics
    "generate_metrics",
    "record_operation",
    "time_operation",
]
