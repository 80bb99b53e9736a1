"""
OpenTelemetry Integration Module

Provides distributed tracing and metrics collection for the bridge:
- tracer: spans around bridged tool calls
- metrics: counters, latency histograms and the pending-call gauge
"""

from .tracer import (
    setup_tracer,
    create_span,
    shutdown_tracer
)
from .metrics import (
    setup_metrics,
    increment_counter,
    record_latency,
    add_gauge_callback
)

__all__ = [
    "setup_tracer",
    "create_span",
    "shutdown_tracer",
    "setup_metrics",
    "increment_counter",
    "record_latency",
    "add_gauge_callback"
]
