"""
OpenTelemetry Metrics Collection

Counters and histograms for bridge traffic. Until setup_metrics() installs a
MeterProvider the OpenTelemetry API hands out no-op instruments, so recording
is always safe.
"""

import logging
import sys
from typing import Any, Callable, Dict, Iterable

from opentelemetry import metrics
from opentelemetry.metrics import CallbackOptions, Observation
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader
)
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

logger = logging.getLogger(__name__)

# Known bridge instruments: name -> (description, unit)
BRIDGE_COUNTERS = {
    "bridge.near.requests": ("Calls received from the MCP client", "1"),
    "bridge.near.errors": ("Near-side parse, routing and call failures", "1"),
    "bridge.far.calls": ("Tool calls sent to the browser extension", "1"),
    "bridge.far.errors": ("Tool calls that failed or could not be sent", "1"),
    "bridge.far.connections": ("Browser extension connections accepted", "1"),
}
BRIDGE_HISTOGRAMS = {
    "bridge.far.call.latency": ("Round trip of a forwarded tool call", "ms"),
}

# Instrument caches, keyed by name
_counters = {}
_histograms = {}
_gauges = {}


def setup_metrics(service_name: str,
                  otlp_endpoint: str = "localhost:4317",
                  export_interval_ms: int = 5000,
                  console: bool = False):
    """Configure OpenTelemetry metrics collection

    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address
        export_interval_ms: Metrics export interval in milliseconds
        console: Also dump metrics to stderr (stdout carries the MCP protocol)
    """
    exporters = [OTLPMetricExporter(endpoint=otlp_endpoint)]
    if console:
        exporters.append(ConsoleMetricExporter(out=sys.stderr))

    provider = MeterProvider(metric_readers=[
        PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval_ms)
        for exporter in exporters
    ])
    metrics.set_meter_provider(provider)

    logger.info(f"OpenTelemetry metrics configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")

    return metrics.get_meter(service_name)


def get_counter(name: str):
    """Get or create a counter, described from BRIDGE_COUNTERS when known"""
    if name not in _counters:
        description, unit = BRIDGE_COUNTERS.get(name, (f"Counter for {name}", "1"))
        _counters[name] = metrics.get_meter(__name__).create_counter(
            name=name, description=description, unit=unit
        )
    return _counters[name]


def get_histogram(name: str):
    """Get or create a histogram, described from BRIDGE_HISTOGRAMS when known"""
    if name not in _histograms:
        description, unit = BRIDGE_HISTOGRAMS.get(name, (f"Latency histogram for {name}", "ms"))
        _histograms[name] = metrics.get_meter(__name__).create_histogram(
            name=name, description=description, unit=unit
        )
    return _histograms[name]


def increment_counter(name: str, amount: int = 1, attributes: Dict[str, Any] = None):
    """Increment counter value

    Args:
        name: Counter name
        amount: Amount to increment
        attributes: Attribute labels
    """
    get_counter(name).add(amount, attributes or {})


def record_latency(name: str, value_ms: float, attributes: Dict[str, Any] = None):
    """Record one latency sample in milliseconds"""
    get_histogram(name).record(value_ms, attributes or {})


def add_gauge_callback(name: str, callback: Callable[[], int], description: str = None, unit: str = "1"):
    """Register an observable gauge backed by a zero-argument callback

    Registering the same name twice keeps the first gauge.

    Args:
        name: Gauge name
        callback: Returns the current value
        description: Gauge description
        unit: Gauge unit
    """
    if name in _gauges:
        return _gauges[name]

    def observe(options: CallbackOptions) -> Iterable[Observation]:
        yield Observation(callback())

    _gauges[name] = metrics.get_meter(__name__).create_observable_gauge(
        name=name,
        description=description or f"Gauge for {name}",
        unit=unit,
        callbacks=[observe]
    )
    return _gauges[name]
