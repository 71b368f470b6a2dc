"""
Property Indexer - Pipeline Module

Per-event processing, leaf first:
- documents: JSON parsing and typed field lookups
- link_resolver: property -> seed -> target jurisdiction resolution
- events: inbound event shapes and the JSON Lines reader
- event_processor: the per-event entry point
- runner: ordered replay over an event sequence
"""

from pipeline.documents import (
    LookupResult,
    ResolutionErrorKind,
    lookup,
    lookup_string,
    parse_document,
)
from pipeline.event_processor import (
    ContentStatus,
    EventProcessor,
    EventProcessorConfig,
    ProcessingOutcome,
    process_event,
)
from pipeline.events import EventKind, SubmissionEvent, read_event_log
from pipeline.link_resolver import (
    RESOLUTION_HOPS,
    Hop,
    HopTrace,
    LinkResolver,
    ResolutionOutcome,
)
from pipeline.runner import IndexerRunner, RunSummary

__all__ = [
    # Documents
    "LookupResult",
    "ResolutionErrorKind",
    "lookup",
    "lookup_string",
    "parse_document",
    # Resolution
    "RESOLUTION_HOPS",
    "Hop",
    "HopTrace",
    "LinkResolver",
    "ResolutionOutcome",
    # Events
    "EventKind",
    "SubmissionEvent",
    "read_event_log",
    # Processing
    "ContentStatus",
    "EventProcessor",
    "EventProcessorConfig",
    "ProcessingOutcome",
    "process_event",
    # Replay
    "IndexerRunner",
    "RunSummary",
]
