"""
Property Indexer - Replay Runner

Host loop that feeds an ordered event sequence through the EventProcessor.
The aggregates are only correct when events arrive strictly ascending by
(block number, log index), so the runner refuses anything else.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from core.errors import ErrorContext, IndexerPipelineError
from pipeline.event_processor import ContentStatus, EventProcessor, ProcessingOutcome
from pipeline.events import SubmissionEvent

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counts for one replay."""

    events: int = 0
    timeouts: int = 0
    labelled: int = 0
    resolved: int = 0
    aggregate_writes: int = 0
    last_position: Optional[Tuple[int, int]] = None
    content_statuses: Dict[str, int] = field(default_factory=dict)

    def add(self, outcome: ProcessingOutcome) -> None:
        self.events += 1
        status = outcome.content_status
        self.content_statuses[status.value] = self.content_statuses.get(status.value, 0) + 1
        if status == ContentStatus.TIMEOUT:
            self.timeouts += 1
        if status == ContentStatus.LABELLED:
            self.labelled += 1
        if outcome.resolution.resolved:
            self.resolved += 1
        self.aggregate_writes += len(outcome.aggregates.writes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": self.events,
            "timeouts": self.timeouts,
            "labelled": self.labelled,
            "resolved": self.resolved,
            "aggregate_writes": self.aggregate_writes,
            "last_position": list(self.last_position) if self.last_position else None,
            "content_statuses": dict(sorted(self.content_statuses.items())),
        }


class IndexerRunner:
    """
    Processes events one at a time, in delivery order.

    Usage:
        runner = IndexerRunner(EventProcessor(store, fetcher))
        summary = runner.run(read_event_log("events.jsonl"))
    """

    def __init__(
        self,
        processor: EventProcessor,
        on_outcome: Optional[Callable[[ProcessingOutcome], None]] = None,
    ):
        self.processor = processor
        self.on_outcome = on_outcome
        self._last_position: Optional[Tuple[int, int]] = None

    def run(self, events: Iterable[SubmissionEvent]) -> RunSummary:
        summary = RunSummary()
        for event in events:
            self._check_order(event)
            outcome = self.processor.process(event)
            self._last_position = event.position
            summary.last_position = event.position
            summary.add(outcome)
            if self.on_outcome:
                self.on_outcome(outcome)

            if summary.events % 1000 == 0:
                logger.info(f"Processed {summary.events} events (block {event.block_number})")

        logger.info(
            f"Replay complete: {summary.events} events, {summary.timeouts} timeouts, "
            f"{summary.resolved} resolved"
        )
        return summary

    def _check_order(self, event: SubmissionEvent) -> None:
        if self._last_position is not None and event.position <= self._last_position:
            raise IndexerPipelineError(
                f"event {event.event_id} at {event.position} does not follow {self._last_position}",
                event_id=event.event_id,
                block_number=event.block_number,
                log_index=event.log_index,
                context=ErrorContext(
                    operation="replay",
                    component="runner",
                    event_id=event.event_id,
                    metadata={"previous_position": list(self._last_position)},
                ),
                suggestions=["Deliver events sorted by block number, then log index"],
            )
