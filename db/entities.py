"""
Property Indexer - Entity Definitions

One PropertyRecord per inbound event plus nine aggregate kinds. Dedup pairs
are first-seen witnesses and are never mutated after creation; counters only
ever grow.

Keys are deterministic compositions of lowercase 0x-hex identities and label
or jurisdiction text, joined with "-". Stores keep each kind in its own
keyspace, so equal key strings of different kinds never collide (the
SubmitterJurisdictionLabelDedupPair and SubmitterJurisdictionLabelCounter
share the same composition).
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from core.cid import derive_content_id, from_hex

E = TypeVar("E", bound="Entity")

TIMEOUT_LABEL = "TIMEOUT"
TIMEOUT_CONTENT_PREFIX = "TIMEOUT:"


# =============================================================================
# KEY COMPOSITION
# =============================================================================


def compose_key(*parts: Any) -> str:
    return "-".join(str(part) for part in parts)


def property_record_key(transaction_hash: str, log_index: int) -> str:
    return compose_key(transaction_hash, log_index)


def label_pair_key(root_hash: str, label: str) -> str:
    return compose_key(root_hash, label)


def submitter_label_pair_key(root_hash: str, submitter: str, label: str) -> str:
    return compose_key(root_hash, submitter, label)


def submitter_label_key(submitter: str, label: str) -> str:
    return compose_key(submitter, label)


def submitter_jurisdiction_key(submitter: str, jurisdiction: str) -> str:
    return compose_key(submitter, jurisdiction)


def submitter_jurisdiction_label_key(submitter: str, jurisdiction: str, label: str) -> str:
    return compose_key(submitter, jurisdiction, label)


# =============================================================================
# BASE
# =============================================================================


@dataclass
class Entity:
    """Base for everything the entity store persists."""

    kind: ClassVar[str] = "Entity"

    id: str

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        for name, value in data.items():
            if isinstance(value, Decimal):
                data[name] = str(value)
        return data

    @classmethod
    def from_dict(cls: Type[E], data: Dict[str, Any]) -> E:
        values = {}
        for f in dataclasses.fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.type in ("Decimal", Decimal) and value is not None:
                value = Decimal(value)
            elif isinstance(value, list):
                value = list(value)
            values[f.name] = value
        return cls(**values)


# =============================================================================
# PROPERTY RECORD
# =============================================================================


@dataclass
class PropertyRecord(Entity):
    """One submission event, normalized. Immutable once saved."""

    kind: ClassVar[str] = "PropertyRecord"

    root_hash: str
    group_hash: str
    submitter: str
    content_hash: str
    owner: str
    block_timestamp: int
    block_number: int
    transaction_hash: str
    content: Optional[str] = None
    label: Optional[str] = None
    jurisdiction: Optional[str] = None

    @property
    def content_id(self) -> str:
        """Derived from content_hash; never persisted."""
        return derive_content_id(from_hex(self.content_hash))

    @property
    def timed_out(self) -> bool:
        return self.label == TIMEOUT_LABEL

    @property
    def has_countable_label(self) -> bool:
        return bool(self.label) and self.label != TIMEOUT_LABEL


# =============================================================================
# DEDUP PAIRS
# =============================================================================


@dataclass
class LabelDedupPair(Entity):
    kind: ClassVar[str] = "LabelDedupPair"

    root_hash: str
    label: str
    first_seen_timestamp: int
    first_seen_block: int


@dataclass
class SubmitterLabelDedupPair(Entity):
    kind: ClassVar[str] = "SubmitterLabelDedupPair"

    root_hash: str
    submitter: str
    label: str
    first_seen_timestamp: int
    first_seen_block: int


@dataclass
class SubmitterJurisdictionDedupPair(Entity):
    """Leaderboard witness that a submitter has been active in a jurisdiction."""

    kind: ClassVar[str] = "SubmitterJurisdictionDedupPair"

    submitter: str
    jurisdiction: str
    first_seen_timestamp: int
    first_seen_block: int


@dataclass
class SubmitterJurisdictionLabelDedupPair(Entity):
    kind: ClassVar[str] = "SubmitterJurisdictionLabelDedupPair"

    submitter: str
    jurisdiction: str
    label: str
    first_seen_timestamp: int
    first_seen_block: int


# =============================================================================
# COUNTERS
# =============================================================================


@dataclass
class LabelCounter(Entity):
    """Distinct root hashes seen with a label."""

    kind: ClassVar[str] = "LabelCounter"

    label: str
    unique_property_count: int = 0


@dataclass
class SubmitterLabelCounter(Entity):
    """Distinct root hashes a submitter has contributed under a label."""

    kind: ClassVar[str] = "SubmitterLabelCounter"

    submitter: str
    label: str
    unique_property_count: int = 0


@dataclass
class SubmitterJurisdictionLabelCounter(Entity):
    """Events per (submitter, jurisdiction, label). Not deduplicated."""

    kind: ClassVar[str] = "SubmitterJurisdictionLabelCounter"

    submitter: str
    jurisdiction: str
    label: str
    properties_mined: int = 0
    last_activity_timestamp: int = 0
    last_activity_block: int = 0


@dataclass
class SubmitterJurisdictionCounter(Entity):
    """
    Per-submitter activity across jurisdictions.

    rate is total_events divided by the seconds between the first and the
    latest attributed event; it stays at its previous value while no time
    has elapsed.
    """

    kind: ClassVar[str] = "SubmitterJurisdictionCounter"

    submitter: str
    first_activity_timestamp: int
    last_activity_timestamp: int
    last_activity_block: int
    unique_jurisdictions: List[str] = field(default_factory=list)
    unique_jurisdiction_count: int = 0
    total_events: int = 0
    rate: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class JurisdictionCounter(Entity):
    """Events attributed to a jurisdiction, regardless of submitter or label."""

    kind: ClassVar[str] = "JurisdictionCounter"

    jurisdiction: str
    total_events: int = 0


AGGREGATE_TYPES: Dict[str, Type[Entity]] = {
    cls.kind: cls
    for cls in (
        LabelDedupPair,
        LabelCounter,
        SubmitterLabelDedupPair,
        SubmitterLabelCounter,
        SubmitterJurisdictionDedupPair,
        SubmitterJurisdictionLabelDedupPair,
        SubmitterJurisdictionLabelCounter,
        SubmitterJurisdictionCounter,
        JurisdictionCounter,
    )
}

ENTITY_TYPES: Dict[str, Type[Entity]] = {
    PropertyRecord.kind: PropertyRecord,
    **AGGREGATE_TYPES,
}


def entity_type(kind: str) -> Type[Entity]:
    try:
        return ENTITY_TYPES[kind]
    except KeyError:
        raise KeyError(f"unknown entity kind: {kind}") from None
