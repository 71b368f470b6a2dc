"""
Property Indexer - Observability Package

Components:
- tracing: OpenTelemetry distributed tracing with OTLP export
- metrics: pipeline counters and histograms
- logging: structlog integration with trace context propagation

Usage:
    from observability import setup_observability, shutdown_observability

    setup_observability(service_name="property-indexer", tracing_enabled=True)
    ...
    shutdown_observability()
"""
from .logging import (
    LogContext,
    LoggingConfig,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .metrics import (
    IndexerMetrics,
    MetricsConfig,
    get_indexer_metrics,
    setup_metrics,
    shutdown_metrics,
)
from .tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)

__all__ = [
    # Tracing
    "setup_tracing",
    "get_tracer",
    "create_span",
    "TracingConfig",
    "shutdown_tracing",
    # Metrics
    "setup_metrics",
    "get_indexer_metrics",
    "MetricsConfig",
    "IndexerMetrics",
    "shutdown_metrics",
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LogContext",
    "shutdown_logging",
    # Combined setup
    "setup_observability",
    "shutdown_observability",
]


def setup_observability(
    service_name: str = "property-indexer",
    otlp_endpoint: str = "http://localhost:4317",
    tracing_enabled: bool = False,
    metrics_enabled: bool = False,
    log_level: str = "INFO",
    log_json: bool = True,
    environment: str = "development",
) -> None:
    """
    Initialize logging, and tracing and metrics export when enabled.

    Example:
        >>> setup_observability(
        ...     otlp_endpoint="http://collector:4317",
        ...     tracing_enabled=True,
        ... )
    """
    setup_logging(LoggingConfig(
        service_name=service_name,
        level=log_level,
        json_format=log_json,
        environment=environment,
    ))

    setup_tracing(TracingConfig(
        service_name=service_name,
        otlp_endpoint=otlp_endpoint,
        enabled=tracing_enabled,
        environment=environment,
    ))

    setup_metrics(MetricsConfig(
        service_name=service_name,
        otlp_endpoint=otlp_endpoint,
        enabled=metrics_enabled,
        environment=environment,
    ))


def shutdown_observability() -> None:
    """Flush telemetry to the collector before exit."""
    shutdown_tracing()
    shutdown_metrics()
    shutdown_logging()
