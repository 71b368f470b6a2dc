"""
Tests for core/errors.py - Error Hierarchy.

Covers:
- IndexerError formatting and serialization
- Subclass codes, severities and extra fields
- classify_error mapping
- Span recording
"""
import pytest


class TestIndexerError:
    """Tests for the IndexerError base class."""

    def test_str_includes_code_component_and_cause(self):
        from core.errors import ErrorContext, IndexerError

        error = IndexerError(
            "store unavailable",
            context=ErrorContext(operation="save", component="sql_store"),
            cause=RuntimeError("disk full"),
        )

        text = str(error)
        assert text.startswith("[INDEXER_ERROR] store unavailable")
        assert "(component: sql_store)" in text
        assert "[caused by: disk full]" in text

    def test_to_dict(self):
        from core.errors import ErrorContext, IndexerStoreError

        error = IndexerStoreError(
            "save failed",
            entity_kind="LabelCounter",
            entity_id="Seed",
            context=ErrorContext(operation="save", component="sql_store", event_id="0xab-1"),
        )

        data = error.to_dict()
        assert data["error_code"] == "STORE_ERROR"
        assert data["severity"] == "fatal"
        assert data["context"]["event_id"] == "0xab-1"
        assert data["cause"] is None
        assert error.entity_kind == "LabelCounter"

    def test_with_context_without_existing_context(self):
        from core.errors import IndexerError

        error = IndexerError("boom").with_context(cid="bafk")

        assert error.context.metadata == {"cid": "bafk"}

    def test_with_context_merges(self):
        from core.errors import ErrorContext, IndexerError

        error = IndexerError("boom", context=ErrorContext(operation="fetch", component="ipfs"))
        error.with_context(attempt=2)

        assert error.context.metadata == {"attempt": 2}
        assert error.context.operation == "fetch"

    def test_fetch_error_is_recoverable(self):
        from core.errors import IndexerFetchError

        error = IndexerFetchError("HTTP 504", content_id="bafk", status_code=504)

        assert error.recoverable is True
        assert error.status_code == 504

    def test_records_to_active_span(self):
        """Test that raising inside a span marks it as errored."""
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import SimpleSpanProcessor
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
        from opentelemetry.trace import StatusCode

        from core.errors import IndexerPipelineError

        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        tracer = provider.get_tracer("test")

        with tracer.start_as_current_span("replay"):
            IndexerPipelineError("out of order", block_number=5, log_index=1)

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.attributes["error.code"] == "PIPELINE_ERROR"


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize("error, expected_code", [
        (TimeoutError("slow"), "FETCH_ERROR"),
        (ConnectionError("refused"), "FETCH_ERROR"),
        (ValueError("bad"), "VALIDATION_ERROR"),
        (RuntimeError("other"), "INDEXER_ERROR"),
    ])
    def test_mapping(self, error, expected_code):
        from core.errors import classify_error

        classified = classify_error(error)

        assert classified.error_code == expected_code
        assert classified.cause is error

    def test_indexer_errors_pass_through(self):
        from core.errors import IndexerCodecError, classify_error

        error = IndexerCodecError("bad width")

        assert classify_error(error) is error
