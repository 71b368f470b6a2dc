"""
Property Indexer - Unified Error Handling

Error hierarchy shared by the codec, the content client, the pipeline and
the entity stores.

Only a few of these errors are meant to reach the host loop:
- IndexerStoreError: the entity store failed; the run must stop
- IndexerPipelineError: the event source broke its ordering contract
- IndexerCodecError: a caller handed the codec a hash of the wrong width

Fetch, parse and missing-field failures are absorbed by the pipeline and
surface as sentinel or unset fields on the persisted record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    FATAL = "fatal"


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    event_id: Optional[str] = None
    content_id: Optional[str] = None
    root_hash: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "event_id": self.event_id,
            "content_id": self.content_id,
            "root_hash": self.root_hash,
            "metadata": self.metadata,
        }


class IndexerError(Exception):
    """
    Base exception for all indexer errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "INDEXER_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            span.set_attribute("error.recoverable", self.recoverable)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logs and CLI output."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)

    def with_context(self, **kwargs: Any) -> "IndexerError":
        """Add additional context to the error."""
        if self.context:
            self.context.metadata.update(kwargs)
        else:
            self.context = ErrorContext(
                operation="unknown",
                component="unknown",
                metadata=kwargs
            )
        return self


class IndexerConfigError(IndexerError):
    """Configuration-related errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[Type] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.expected_type = expected_type
        self.actual_value = actual_value


class IndexerStoreError(IndexerError):
    """Entity store failures. Fatal for the run."""

    error_code = "STORE_ERROR"
    default_severity = ErrorSeverity.FATAL

    def __init__(
        self,
        message: str,
        entity_kind: Optional[str] = None,
        entity_id: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.entity_kind = entity_kind
        self.entity_id = entity_id


class IndexerFetchError(IndexerError):
    """A single content fetch attempt failed."""

    error_code = "FETCH_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        content_id: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.content_id = content_id
        self.status_code = status_code


class IndexerValidationError(IndexerError):
    """Malformed inbound data."""

    error_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        expected_format: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        self.expected_format = expected_format
        self.actual_value = actual_value


class IndexerCodecError(IndexerValidationError):
    """Content identifier derivation was handed a hash of the wrong width."""

    error_code = "CODEC_ERROR"
    default_severity = ErrorSeverity.ERROR


class IndexerPipelineError(IndexerError):
    """Pipeline execution errors, such as out-of-order event delivery."""

    error_code = "PIPELINE_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        event_id: Optional[str] = None,
        block_number: Optional[int] = None,
        log_index: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.event_id = event_id
        self.block_number = block_number
        self.log_index = log_index


# Error mapping for automatic classification
ERROR_TYPE_MAP: Dict[Type[Exception], Type[IndexerError]] = {
    TimeoutError: IndexerFetchError,
    ConnectionError: IndexerFetchError,
    ValueError: IndexerValidationError,
}


def classify_error(error: Exception) -> IndexerError:
    """Classify a generic exception into the appropriate IndexerError type."""
    if isinstance(error, IndexerError):
        return error
    for error_type, indexer_type in ERROR_TYPE_MAP.items():
        if isinstance(error, error_type):
            return indexer_type(
                message=str(error),
                cause=error,
            )
    return IndexerError(
        message=str(error),
        cause=error,
    )
