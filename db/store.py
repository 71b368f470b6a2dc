"""
Property Indexer - Entity Store Interface

The pipeline only ever talks to a store through load/save. Entities are
passed by value: mutating a loaded entity has no effect until it is saved.
"""
from __future__ import annotations

import json
from typing import Dict, Iterable, Iterator, Optional, Protocol, Tuple, runtime_checkable

from db.entities import ENTITY_TYPES, Entity, entity_type


@runtime_checkable
class EntityStore(Protocol):
    """Keyed load/save service for every entity kind."""

    def load(self, kind: str, key: str) -> Optional[Entity]:
        ...

    def save(self, entity: Entity) -> None:
        ...

    def iter_kind(self, kind: str) -> Iterator[Entity]:
        """Yield every entity of a kind, ordered by id."""
        ...


class InMemoryEntityStore:
    """
    Dictionary-backed store.

    Holds serialized payloads rather than live objects so that it behaves
    like a durable store: what was saved is what loads back.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, dict]] = {}
        self.load_count = 0
        self.save_count = 0

    def load(self, kind: str, key: str) -> Optional[Entity]:
        self.load_count += 1
        payload = self._data.get(kind, {}).get(key)
        if payload is None:
            return None
        return entity_type(kind).from_dict(payload)

    def save(self, entity: Entity) -> None:
        self.save_count += 1
        self._data.setdefault(entity.kind, {})[entity.id] = entity.to_dict()

    def iter_kind(self, kind: str) -> Iterator[Entity]:
        cls = entity_type(kind)
        bucket = self._data.get(kind, {})
        for key in sorted(bucket):
            yield cls.from_dict(bucket[key])

    def count(self, kind: str) -> int:
        return len(self._data.get(kind, {}))

    def keys(self) -> Iterator[Tuple[str, str]]:
        for kind in sorted(self._data):
            for key in sorted(self._data[kind]):
                yield kind, key


def dump_snapshot(store: EntityStore, kinds: Optional[Iterable[str]] = None) -> str:
    """
    Serialize store contents deterministically.

    Two replays of the same event log produce byte-identical output.
    """
    selected = sorted(kinds) if kinds is not None else sorted(ENTITY_TYPES)
    snapshot = {
        kind: {entity.id: entity.to_dict() for entity in store.iter_kind(kind)}
        for kind in selected
    }
    return json.dumps(snapshot, sort_keys=True, indent=2, ensure_ascii=False)
