"""
Property Indexer - Content Fetcher

Bounded retry around a ContentTransport. Attempts run back to back; the
policy only sleeps between them when a backoff delay is configured.
"""
from __future__ import annotations

from typing import Optional

from opentelemetry import trace

from core.errors import classify_error
from core.resilience import RetryConfig, RetryPolicy
from integrations.ipfs import ContentTransport
from observability.logging import get_logger
from observability.metrics import record_fetch_attempt, record_fetch_exhausted

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class ContentFetcher:
    """
    Fetches content bytes by identifier with a fixed attempt budget.

    Usage:
        fetcher = ContentFetcher(KuboRpcTransport("http://127.0.0.1:5001"))
        payload = fetcher.fetch("bafkrei...")
        if payload is None:
            ...  # every attempt failed
    """

    def __init__(
        self,
        transport: ContentTransport,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.transport = transport
        self.policy = RetryPolicy(retry_config or RetryConfig(max_attempts=DEFAULT_MAX_ATTEMPTS))

    @property
    def max_attempts(self) -> int:
        return self.policy.config.max_attempts

    def fetch(self, cid: str, max_attempts: Optional[int] = None) -> Optional[bytes]:
        """
        Return the content for cid, or None after max_attempts failures.

        Exceptions the retry policy marks non-retryable propagate.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        with tracer.start_as_current_span("content.fetch") as span:
            span.set_attribute("content.cid", cid)
            span.set_attribute("retry.max_attempts", attempts)

            for attempt in range(1, attempts + 1):
                logger.debug("Fetching content", cid=cid, attempt=attempt, max_attempts=attempts)
                try:
                    payload = self.transport.cat(cid)
                except Exception as e:
                    if not self.policy.is_retryable(e):
                        raise
                    error = classify_error(e)
                    logger.warning(
                        "Content fetch attempt failed",
                        cid=cid,
                        attempt=attempt,
                        max_attempts=attempts,
                        error_code=error.error_code,
                        error=str(e),
                    )
                    record_fetch_attempt("error")
                else:
                    if payload is not None:
                        logger.info(
                            "Content fetched",
                            cid=cid,
                            attempt=attempt,
                            size=len(payload),
                        )
                        record_fetch_attempt("success")
                        span.set_attribute("retry.attempts_used", attempt)
                        return bytes(payload)

                    logger.warning(
                        "Content fetch attempt returned nothing",
                        cid=cid,
                        attempt=attempt,
                        max_attempts=attempts,
                    )
                    record_fetch_attempt("empty")

                if attempt < attempts:
                    self.policy.pause(attempt)

            span.set_attribute("retry.attempts_used", attempts)
            span.set_attribute("content.exhausted", True)

        logger.error("Content fetch exhausted", cid=cid, attempts=attempts)
        record_fetch_exhausted()
        return None
