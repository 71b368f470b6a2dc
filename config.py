"""
Property Indexer - Configuration

Centralized configuration for the indexer, read from environment variables
(and a .env file, when present) with defaults suited to a local node.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.errors import IndexerConfigError

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError as e:
        raise IndexerConfigError(
            f"{name} must be an integer", config_key=name, expected_type=int, actual_value=raw, cause=e
        ) from e
    if value < minimum:
        raise IndexerConfigError(
            f"{name} must be >= {minimum}", config_key=name, expected_type=int, actual_value=raw
        )
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        value = float(raw)
    except ValueError as e:
        raise IndexerConfigError(
            f"{name} must be a number", config_key=name, expected_type=float, actual_value=raw, cause=e
        ) from e
    if value < 0:
        raise IndexerConfigError(
            f"{name} must be >= 0", config_key=name, expected_type=float, actual_value=raw
        )
    return value


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class IpfsConfig:
    """Content network client configuration."""
    api_url: str = field(default_factory=lambda: os.getenv("IPFS_API_URL", "http://127.0.0.1:5001"))
    # When set, content is read through this HTTP gateway instead of the RPC API
    gateway_url: Optional[str] = field(default_factory=lambda: os.getenv("IPFS_GATEWAY_URL") or None)
    timeout: float = field(default_factory=lambda: _env_float("IPFS_TIMEOUT", 30.0))
    max_attempts: int = field(default_factory=lambda: _env_int("IPFS_MAX_ATTEMPTS", 3, minimum=1))
    retry_base_delay: float = field(default_factory=lambda: _env_float("IPFS_RETRY_BASE_DELAY", 0.0))


@dataclass
class StoreConfig:
    """Entity store configuration."""
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./data/indexer.db")
    )
    echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO"))


@dataclass
class ObservabilityConfig:
    """OpenTelemetry export and log rendering settings."""
    service_name: str = field(
        default_factory=lambda: os.getenv("OTEL_SERVICE_NAME", "property-indexer")
    )
    otlp_endpoint: str = field(
        default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    )
    tracing_enabled: bool = field(default_factory=lambda: _env_bool("OTEL_TRACING_ENABLED"))
    metrics_enabled: bool = field(default_factory=lambda: _env_bool("OTEL_METRICS_ENABLED"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", "true"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "otlp_endpoint": self.otlp_endpoint,
            "tracing_enabled": self.tracing_enabled,
            "metrics_enabled": self.metrics_enabled,
            "log_level": self.log_level,
            "log_json": self.log_json,
        }


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("INDEXER_ENV", "development")))

    ipfs: IpfsConfig = field(default_factory=IpfsConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    def setup_observability(self) -> None:
        """Configure logging, tracing and metrics from this config."""
        from observability import setup_observability

        setup_observability(
            service_name=self.observability.service_name,
            otlp_endpoint=self.observability.otlp_endpoint,
            tracing_enabled=self.observability.tracing_enabled,
            metrics_enabled=self.observability.metrics_enabled,
            log_level=self.observability.log_level,
            log_json=self.observability.log_json,
            environment=self.env.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (the database URL may hold credentials)."""
        return {
            "env": self.env.value,
            "ipfs": {
                "api_url": self.ipfs.api_url,
                "gateway_url": self.ipfs.gateway_url,
                "timeout": self.ipfs.timeout,
                "max_attempts": self.ipfs.max_attempts,
                "retry_base_delay": self.ipfs.retry_base_delay,
            },
            "store": {
                "database_url": _redact_url(self.store.database_url),
                "echo": self.store.echo,
            },
            "observability": self.observability.to_dict(),
        }


def _redact_url(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
