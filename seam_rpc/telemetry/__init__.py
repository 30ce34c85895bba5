"""
OpenTelemetry Integration Module

Provides tracing and metrics collection for the engine and its adapters:
- tracer: Tracer setup and span creation
- metrics: Counters and latency histograms
"""

from .tracer import (
    setup_tracer,
    create_span,
    mark_span_error
)
from .metrics import (
    setup_metrics,
    increment_counter,
    record_latency
)

__all__ = [
    "setup_tracer",
    "create_span",
    "mark_span_error",
    "setup_metrics",
    "increment_counter",
    "record_latency"
]
