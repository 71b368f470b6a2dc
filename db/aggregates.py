"""
Aggregate projections over PropertyRecords.

AggregateUpdater keeps the nine leaderboard entities in step with the
record stream using load-or-create semantics. It assumes records arrive in
event order and that nothing else writes the same keyspace.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from db.entities import (
    Entity,
    JurisdictionCounter,
    LabelCounter,
    LabelDedupPair,
    PropertyRecord,
    SubmitterJurisdictionCounter,
    SubmitterJurisdictionDedupPair,
    SubmitterJurisdictionLabelCounter,
    SubmitterJurisdictionLabelDedupPair,
    SubmitterLabelCounter,
    SubmitterLabelDedupPair,
    label_pair_key,
    submitter_jurisdiction_key,
    submitter_jurisdiction_label_key,
    submitter_label_key,
    submitter_label_pair_key,
)
from db.store import EntityStore
from observability.metrics import record_aggregate_write


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


@dataclass
class AggregateUpdate:
    """What one update() call wrote, in write order."""

    record_id: str
    writes: List[Tuple[str, str]] = field(default_factory=list)
    created: List[Tuple[str, str]] = field(default_factory=list)

    def wrote(self, kind: str, key: Optional[str] = None) -> bool:
        return any(k == kind and (key is None or i == key) for k, i in self.writes)


class AggregateUpdater:
    """
    Projection maintaining the dedup pairs and counters.

    The jurisdiction branch runs only for records with a non-empty
    jurisdiction; the label branch only for records whose label is set,
    non-empty and not the timeout sentinel. Both branches are independent.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    # -------------------------------------------------------------------------
    # load-or-create
    # -------------------------------------------------------------------------

    def _load_or_create(
        self,
        entity_cls: Type[E],
        key: str,
        factory: Callable[[], E],
    ) -> Tuple[E, bool]:
        existing = self.store.load(entity_cls.kind, key)
        if existing is not None:
            return existing, False  # type: ignore[return-value]
        return factory(), True

    def _save(self, entity: Entity, update: AggregateUpdate, created: bool = False) -> None:
        self.store.save(entity)
        update.writes.append((entity.kind, entity.id))
        if created:
            update.created.append((entity.kind, entity.id))
        record_aggregate_write(entity.kind)

    # -------------------------------------------------------------------------
    # update
    # -------------------------------------------------------------------------

    def update(self, record: PropertyRecord, timestamp: int, block_number: int) -> AggregateUpdate:
        """Apply one record to every aggregate it qualifies for."""
        update = AggregateUpdate(record_id=record.id)

        if record.jurisdiction:
            self._apply_jurisdiction(record, record.jurisdiction, timestamp, block_number, update)

        if record.has_countable_label:
            self._apply_label(record, timestamp, block_number, update)

        logger.debug(
            f"Aggregates for {record.id}: {len(update.writes)} writes, "
            f"{len(update.created)} created"
        )
        return update

    def _apply_jurisdiction(
        self,
        record: PropertyRecord,
        jurisdiction: str,
        timestamp: int,
        block_number: int,
        update: AggregateUpdate,
    ) -> None:
        submitter = record.submitter

        key = submitter_jurisdiction_key(submitter, jurisdiction)
        pair, created = self._load_or_create(
            SubmitterJurisdictionDedupPair,
            key,
            lambda: SubmitterJurisdictionDedupPair(
                id=key,
                submitter=submitter,
                jurisdiction=jurisdiction,
                first_seen_timestamp=timestamp,
                first_seen_block=block_number,
            ),
        )
        if created:
            self._save(pair, update, created=True)
            logger.info(f"Submitter {submitter} first seen in {jurisdiction}")

        if record.has_countable_label:
            label = record.label
            key = submitter_jurisdiction_label_key(submitter, jurisdiction, label)

            label_pair, created = self._load_or_create(
                SubmitterJurisdictionLabelDedupPair,
                key,
                lambda: SubmitterJurisdictionLabelDedupPair(
                    id=key,
                    submitter=submitter,
                    jurisdiction=jurisdiction,
                    label=label,
                    first_seen_timestamp=timestamp,
                    first_seen_block=block_number,
                ),
            )
            if created:
                self._save(label_pair, update, created=True)

            counter, created = self._load_or_create(
                SubmitterJurisdictionLabelCounter,
                key,
                lambda: SubmitterJurisdictionLabelCounter(
                    id=key,
                    submitter=submitter,
                    jurisdiction=jurisdiction,
                    label=label,
                ),
            )
            counter.properties_mined += 1
            counter.last_activity_timestamp = timestamp
            counter.last_activity_block = block_number
            self._save(counter, update, created=created)

        activity, created = self._load_or_create(
            SubmitterJurisdictionCounter,
            submitter,
            lambda: SubmitterJurisdictionCounter(
                id=submitter,
                submitter=submitter,
                first_activity_timestamp=timestamp,
                last_activity_timestamp=timestamp,
                last_activity_block=block_number,
            ),
        )
        if jurisdiction not in activity.unique_jurisdictions:
            activity.unique_jurisdictions.append(jurisdiction)
        activity.unique_jurisdiction_count = len(activity.unique_jurisdictions)
        activity.total_events += 1
        activity.last_activity_timestamp = timestamp
        activity.last_activity_block = block_number

        elapsed = timestamp - activity.first_activity_timestamp
        if elapsed > 0:
            activity.rate = Decimal(activity.total_events) / Decimal(elapsed)
        self._save(activity, update, created=created)

        county, created = self._load_or_create(
            JurisdictionCounter,
            jurisdiction,
            lambda: JurisdictionCounter(id=jurisdiction, jurisdiction=jurisdiction),
        )
        county.total_events += 1
        self._save(county, update, created=created)

    def _apply_label(
        self,
        record: PropertyRecord,
        timestamp: int,
        block_number: int,
        update: AggregateUpdate,
    ) -> None:
        label = record.label
        root_hash = record.root_hash
        submitter = record.submitter

        key = label_pair_key(root_hash, label)
        pair, created = self._load_or_create(
            LabelDedupPair,
            key,
            lambda: LabelDedupPair(
                id=key,
                root_hash=root_hash,
                label=label,
                first_seen_timestamp=timestamp,
                first_seen_block=block_number,
            ),
        )
        if created:
            self._save(pair, update, created=True)
            counter, counter_created = self._load_or_create(
                LabelCounter,
                label,
                lambda: LabelCounter(id=label, label=label),
            )
            counter.unique_property_count += 1
            self._save(counter, update, created=counter_created)

        key = submitter_label_pair_key(root_hash, submitter, label)
        submitter_pair, created = self._load_or_create(
            SubmitterLabelDedupPair,
            key,
            lambda: SubmitterLabelDedupPair(
                id=key,
                root_hash=root_hash,
                submitter=submitter,
                label=label,
                first_seen_timestamp=timestamp,
                first_seen_block=block_number,
            ),
        )
        if created:
            self._save(submitter_pair, update, created=True)
            counter_key = submitter_label_key(submitter, label)
            submitter_counter, counter_created = self._load_or_create(
                SubmitterLabelCounter,
                counter_key,
                lambda: SubmitterLabelCounter(id=counter_key, submitter=submitter, label=label),
            )
            submitter_counter.unique_property_count += 1
            self._save(submitter_counter, update, created=counter_created)
