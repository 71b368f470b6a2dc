"""
Property Indexer - Test Configuration

Pytest fixtures and configuration for all tests.
"""
import pytest
from pathlib import Path

from core.resilience import RetryConfig
from db.store import InMemoryEntityStore
from integrations.content_fetcher import ContentFetcher
from pipeline.event_processor import EventProcessor
from tests.fakes import FakeTransport, make_hash


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture
def transport() -> FakeTransport:
    """Scriptable in-memory content network."""
    return FakeTransport()


@pytest.fixture
def fetcher(transport) -> ContentFetcher:
    """Fetcher with the default three-attempt budget and no delay."""
    return ContentFetcher(transport, RetryConfig(max_attempts=3))


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def processor(store, fetcher) -> EventProcessor:
    return EventProcessor(store, fetcher)


# =============================================================================
# Sample data
# =============================================================================

@pytest.fixture
def empty_digest() -> bytes:
    """sha256 of the empty string."""
    return bytes.fromhex("e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855")


@pytest.fixture
def empty_digest_cid() -> str:
    return "bafkreihdwdcefgh4dqkjv67uzcmw7ojee6xedzdetojuzjevtenxquvyku"


@pytest.fixture
def root_hash() -> bytes:
    return make_hash("parcel-1")


@pytest.fixture
def tmp_data_dir(tmp_path) -> Path:
    """Temporary data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def stdlib_logging_spy(monkeypatch):
    """Capture stdlib logging setup and restore the structlog configuration afterwards."""
    from unittest.mock import Mock

    import structlog

    import observability.logging as obs_logging

    spy = Mock()
    structlog_config = structlog.get_config()
    monkeypatch.setattr(obs_logging, "_configured", obs_logging._configured)
    monkeypatch.setattr(obs_logging, "_configure_stdlib_logging", spy)

    yield spy

    structlog.configure(**structlog_config)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
    config.addinivalue_line("markers", "db: marks database tests")
    config.addinivalue_line("markers", "property: marks property-based tests using Hypothesis")
