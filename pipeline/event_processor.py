"""
Property Indexer - Event Processor

Entry point invoked once per inbound event:

1. Build the PropertyRecord (key transactionHash-logIndex, owner = submitter)
2. Fetch the content document and extract its label
3. Resolve the jurisdiction from the root hash
4. Save the record, whatever happened in 2 and 3
5. Update the aggregates

Fetch, parse and resolution failures never raise out of process(); they end
as sentinel or unset fields on the saved record. Store failures are fatal
and propagate.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from opentelemetry import trace

from core.cid import to_hex
from db.aggregates import AggregateUpdate, AggregateUpdater
from db.entities import TIMEOUT_CONTENT_PREFIX, TIMEOUT_LABEL, PropertyRecord
from db.store import EntityStore
from integrations.content_fetcher import ContentFetcher
from observability.logging import LogContext, get_logger
from observability.metrics import record_event_processed
from pipeline.documents import lookup, parse_document, value_as_text
from pipeline.events import SubmissionEvent
from pipeline.link_resolver import LinkResolver, ResolutionOutcome

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class ContentStatus(Enum):
    """What became of the content document for one event."""

    LABELLED = "labelled"
    LABEL_MISSING = "label_missing"
    PARSE_FAILED = "parse_failed"
    TIMEOUT = "timeout"


@dataclass
class ProcessingOutcome:
    """Everything process() did for one event."""

    record: PropertyRecord
    content_status: ContentStatus
    resolution: ResolutionOutcome
    aggregates: AggregateUpdate
    duration_seconds: float = 0.0

    @property
    def writes(self) -> list:
        return [(self.record.kind, self.record.id)] + list(self.aggregates.writes)


@dataclass
class EventProcessorConfig:
    """Attempt budgets for the two fetch paths."""

    content_attempts: int = 3
    link_attempts: int = 3


class EventProcessor:
    """
    Runs the per-event pipeline against a store and a fetcher.

    Usage:
        processor = EventProcessor(store, fetcher)
        outcome = processor.process(event)
    """

    def __init__(
        self,
        store: EntityStore,
        fetcher: ContentFetcher,
        config: Optional[EventProcessorConfig] = None,
        resolver: Optional[LinkResolver] = None,
        updater: Optional[AggregateUpdater] = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.config = config or EventProcessorConfig()
        self.resolver = resolver or LinkResolver(fetcher, max_attempts=self.config.link_attempts)
        self.updater = updater or AggregateUpdater(store)

    def process(self, event: SubmissionEvent) -> ProcessingOutcome:
        start = time.perf_counter()

        with LogContext(event_id=event.event_id, event_kind=event.kind.value), \
                tracer.start_as_current_span("event.process") as span:
            span.set_attribute("event.id", event.event_id)
            span.set_attribute("event.kind", event.kind.value)
            span.set_attribute("event.block_number", event.block_number)

            logger.info(
                "Processing event",
                block_number=event.block_number,
                log_index=event.log_index,
                root_hash=to_hex(event.root_hash),
                submitter=to_hex(event.submitter),
            )

            record = self._build_record(event)

            content, label, status = self._extract_label(record.content_id)
            record.content = content
            record.label = label

            resolution = self.resolver.resolve(event.root_hash)
            record.jurisdiction = resolution.jurisdiction

            self.store.save(record)
            logger.info(
                "Record saved",
                label=record.label,
                jurisdiction=record.jurisdiction,
                content_status=status.value,
            )

            aggregates = self.updater.update(record, event.block_timestamp, event.block_number)

            span.set_attribute("event.content_status", status.value)
            span.set_attribute("event.aggregate_writes", len(aggregates.writes))

        duration = time.perf_counter() - start
        record_event_processed(event.kind.value, status.value, duration)

        return ProcessingOutcome(
            record=record,
            content_status=status,
            resolution=resolution,
            aggregates=aggregates,
            duration_seconds=duration,
        )

    def _build_record(self, event: SubmissionEvent) -> PropertyRecord:
        submitter = to_hex(event.submitter)
        return PropertyRecord(
            id=event.event_id,
            root_hash=to_hex(event.root_hash),
            group_hash=to_hex(event.group_hash),
            submitter=submitter,
            content_hash=to_hex(event.content_hash),
            owner=submitter,
            block_timestamp=event.block_timestamp,
            block_number=event.block_number,
            transaction_hash=event.transaction_hash,
        )

    def _extract_label(self, cid: str) -> Tuple[str, Optional[str], ContentStatus]:
        """Return (content, label, status) for the content document."""
        payload = self.fetcher.fetch(cid, self.config.content_attempts)
        if payload is None:
            logger.warning("Content unavailable, recording timeout", cid=cid)
            return TIMEOUT_CONTENT_PREFIX + cid, TIMEOUT_LABEL, ContentStatus.TIMEOUT

        content = payload.decode("utf-8", errors="replace")

        parsed = parse_document(payload)
        if not parsed.ok:
            logger.warning("Content is not a JSON object", cid=cid, detail=parsed.detail)
            return content, None, ContentStatus.PARSE_FAILED

        found = lookup(parsed.value, ("label",))
        if not found.ok:
            logger.warning("Content has no label", cid=cid, error_kind=found.error.value)
            return content, None, ContentStatus.LABEL_MISSING

        label = value_as_text(found.value)
        logger.info("Label extracted", cid=cid, label=label)
        return content, label, ContentStatus.LABELLED


def process_event(
    event: SubmissionEvent,
    store: EntityStore,
    fetcher: ContentFetcher,
) -> ProcessingOutcome:
    """Process one event with default settings."""
    return EventProcessor(store, fetcher).process(event)
