"""
Property Indexer - Retry Policy

Bounded, sequential retry used by the content fetcher.

The default policy performs no delay between attempts. Setting a positive
base_delay turns on exponential backoff; that changes observable timing
and is never the default.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Optional, Set, Type


@dataclass
class RetryConfig:
    """Configuration for retry policy."""

    max_attempts: int = 3
    base_delay: float = 0.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = False
    retryable_exceptions: Set[Type[Exception]] = field(
        default_factory=lambda: {Exception}
    )
    non_retryable_exceptions: Set[Type[Exception]] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")


class RetryPolicy:
    """
    Retry policy with optional exponential backoff.

    Usage:
        policy = RetryPolicy(RetryConfig(max_attempts=3))

        for attempt in range(1, policy.config.max_attempts + 1):
            ...
            policy.pause(attempt)
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after the given (1-based) attempt."""
        if self.config.base_delay <= 0:
            return 0.0

        delay = min(
            self.config.base_delay * (self.config.exponential_base ** (attempt - 1)),
            self.config.max_delay
        )

        if self.config.jitter:
            delay *= (0.5 + random.random())

        return delay

    def is_retryable(self, exception: Exception) -> bool:
        """Check if exception should trigger retry."""
        exc_type = type(exception)

        if any(issubclass(exc_type, t) for t in self.config.non_retryable_exceptions):
            return False

        return any(issubclass(exc_type, t) for t in self.config.retryable_exceptions)

    def pause(self, attempt: int) -> float:
        """Sleep between attempts when backoff is configured."""
        delay = self.calculate_delay(attempt)
        if delay > 0:
            time.sleep(delay)
        return delay
