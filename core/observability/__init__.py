"""
Observability Module for the Activity Ingestion Pipeline

Provides:
- Structured logging with correlation IDs
- Metrics collection (submission outcomes, approvals, stage timings)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_submission,
    record_review,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_submission",
    "record_review",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
