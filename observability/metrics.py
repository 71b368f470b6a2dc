"""
Property Indexer - OpenTelemetry Metrics

Key Metrics:
- indexer_events_processed_total: events by kind and content status
- indexer_event_duration_seconds: end-to-end processing time per event
- indexer_fetch_attempts_total: content fetch attempts by outcome
- indexer_fetch_exhausted_total: fetches that used up every attempt
- indexer_resolutions_total: jurisdiction resolutions by outcome
- indexer_aggregate_writes_total: aggregate saves by entity kind

The record_* helpers are no-ops until setup_metrics has run, so library code
can call them unconditionally.

Usage:
    from observability.metrics import setup_metrics, record_fetch_attempt

    setup_metrics(MetricsConfig(enabled=True))
    record_fetch_attempt("success")
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Meter
from opentelemetry.sdk.metrics import MeterProvider as SDKMeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

_meter_provider: Optional[SDKMeterProvider] = None
_indexer_metrics: Optional["IndexerMetrics"] = None


@dataclass
class MetricsConfig:
    """Configuration for OpenTelemetry metrics."""

    service_name: str = "property-indexer"
    service_version: str = "0.1.0"
    otlp_endpoint: str = field(
        default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    )
    enabled: bool = field(
        default_factory=lambda: os.getenv("OTEL_METRICS_ENABLED", "false").lower() == "true"
    )
    environment: str = field(
        default_factory=lambda: os.getenv("INDEXER_ENV", "development")
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    export_interval_millis: int = 60000


class IndexerMetrics:
    """Instruments for the indexing pipeline."""

    def __init__(self, meter: Meter):
        self.meter = meter

        self.events_processed = meter.create_counter(
            name="indexer_events_processed_total",
            description="Events processed, by event kind and content status",
            unit="1",
        )

        self.event_duration = meter.create_histogram(
            name="indexer_event_duration_seconds",
            description="Time to process one event through every aggregate write",
            unit="s",
        )

        self.fetch_attempts = meter.create_counter(
            name="indexer_fetch_attempts_total",
            description="Content fetch attempts, by outcome",
            unit="1",
        )

        self.fetch_exhausted = meter.create_counter(
            name="indexer_fetch_exhausted_total",
            description="Fetches that failed on every attempt",
            unit="1",
        )

        self.resolutions = meter.create_counter(
            name="indexer_resolutions_total",
            description="Jurisdiction resolutions, by outcome",
            unit="1",
        )

        self.aggregate_writes = meter.create_counter(
            name="indexer_aggregate_writes_total",
            description="Aggregate entity saves, by entity kind",
            unit="1",
        )

    def record_event(self, event_kind: str, content_status: str, duration: float) -> None:
        attributes = {"event_kind": event_kind, "content_status": content_status}
        self.events_processed.add(1, attributes)
        self.event_duration.record(duration, {"event_kind": event_kind})


def setup_metrics(config: Optional[MetricsConfig] = None) -> Optional[SDKMeterProvider]:
    """
    Configure OpenTelemetry metrics with OTLP export.

    Returns None when metrics are disabled.
    """
    global _meter_provider, _indexer_metrics

    if _meter_provider is not None:
        return _meter_provider

    config = config or MetricsConfig()
    if not config.enabled:
        return None

    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
    })

    readers = [
        PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=config.otlp_endpoint, insecure=True),
            export_interval_millis=config.export_interval_millis,
        )
    ]

    if config.console_export:
        readers.append(
            PeriodicExportingMetricReader(
                ConsoleMetricExporter(),
                export_interval_millis=config.export_interval_millis,
            )
        )

    _meter_provider = SDKMeterProvider(resource=resource, metric_readers=readers)
    metrics.set_meter_provider(_meter_provider)

    meter = _meter_provider.get_meter(config.service_name, config.service_version)
    _indexer_metrics = IndexerMetrics(meter)

    return _meter_provider


def install_metrics(instance: Optional[IndexerMetrics]) -> None:
    """Replace the global instruments, e.g. with ones bound to a test reader."""
    global _indexer_metrics
    _indexer_metrics = instance


def get_indexer_metrics() -> Optional[IndexerMetrics]:
    return _indexer_metrics


def shutdown_metrics() -> None:
    """Flush and shut down metrics collection."""
    global _meter_provider, _indexer_metrics

    if _meter_provider is not None:
        _meter_provider.shutdown()

    _meter_provider = None
    _indexer_metrics = None


# Convenience functions for direct metric recording
def record_event_processed(event_kind: str, content_status: str, duration: float) -> None:
    m = get_indexer_metrics()
    if m:
        m.record_event(event_kind, content_status, duration)


def record_fetch_attempt(outcome: str) -> None:
    m = get_indexer_metrics()
    if m:
        m.fetch_attempts.add(1, {"outcome": outcome})


def record_fetch_exhausted() -> None:
    m = get_indexer_metrics()
    if m:
        m.fetch_exhausted.add(1)


def record_resolution(outcome: str) -> None:
    """Record a resolution; outcome is "resolved" or an error kind name."""
    m = get_indexer_metrics()
    if m:
        m.resolutions.add(1, {"outcome": outcome})


def record_aggregate_write(entity_kind: str) -> None:
    m = get_indexer_metrics()
    if m:
        m.aggregate_writes.add(1, {"entity_kind": entity_kind})
