"""
Property Indexer - Entity Layer

- entities: PropertyRecord and the nine aggregate kinds
- store: the load/save interface, an in-memory store, snapshots
- sql_store: durable SQLAlchemy store
- aggregates: AggregateUpdater, the projection over PropertyRecords

Usage:
    from db import AggregateUpdater, InMemoryEntityStore

    store = InMemoryEntityStore()
    AggregateUpdater(store).update(record, timestamp, block_number)
"""

from db.aggregates import AggregateUpdate, AggregateUpdater
from db.entities import (
    AGGREGATE_TYPES,
    ENTITY_TYPES,
    TIMEOUT_CONTENT_PREFIX,
    TIMEOUT_LABEL,
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
)
from db.sql_store import SqlEntityStore
from db.store import EntityStore, InMemoryEntityStore, dump_snapshot

__all__ = [
    # Entities
    "AGGREGATE_TYPES",
    "ENTITY_TYPES",
    "TIMEOUT_CONTENT_PREFIX",
    "TIMEOUT_LABEL",
    "Entity",
    "JurisdictionCounter",
    "LabelCounter",
    "LabelDedupPair",
    "PropertyRecord",
    "SubmitterJurisdictionCounter",
    "SubmitterJurisdictionDedupPair",
    "SubmitterJurisdictionLabelCounter",
    "SubmitterJurisdictionLabelDedupPair",
    "SubmitterLabelCounter",
    "SubmitterLabelDedupPair",
    # Stores
    "EntityStore",
    "InMemoryEntityStore",
    "SqlEntityStore",
    "dump_snapshot",
    # Projection
    "AggregateUpdate",
    "AggregateUpdater",
]
