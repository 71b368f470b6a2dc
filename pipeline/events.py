"""
Property Indexer - Inbound Events

Both ledger event kinds carry the same fields and are processed by the same
pipeline; the kind only shows up in logs and metrics.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Union

from core.cid import HASH_LENGTH, SUBMITTER_LENGTH, from_hex, to_hex
from core.errors import IndexerValidationError
from db.entities import property_record_key


class EventKind(Enum):
    """Inbound message shapes."""

    DATA_SUBMITTED = "DataSubmitted"
    DATA_GROUP_HEARTBEAT = "DataGroupHeartBeat"


@dataclass(frozen=True)
class SubmissionEvent:
    """One ledger event, as delivered by the event source."""

    kind: EventKind
    root_hash: bytes
    group_hash: bytes
    submitter: bytes
    content_hash: bytes
    transaction_hash: str
    log_index: int
    block_timestamp: int
    block_number: int

    @property
    def event_id(self) -> str:
        """Key of the PropertyRecord this event produces."""
        return property_record_key(self.transaction_hash.lower(), self.log_index)

    @property
    def position(self) -> tuple:
        return (self.block_number, self.log_index)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubmissionEvent":
        """
        Decode the camelCase wire form.

        Hashes and the submitter are 0x-prefixed hex. Raises
        IndexerValidationError on anything malformed.
        """
        try:
            kind = EventKind(data.get("kind", EventKind.DATA_SUBMITTED.value))
        except ValueError as e:
            raise IndexerValidationError(
                f"unknown event kind {data.get('kind')!r}",
                field_name="kind",
                actual_value=data.get("kind"),
            ) from e

        transaction_hash = _require(data, "transactionHash")
        _decode_bytes(transaction_hash, "transactionHash", HASH_LENGTH)

        return cls(
            kind=kind,
            root_hash=_decode_bytes(_require(data, "rootHash"), "rootHash", HASH_LENGTH),
            group_hash=_decode_bytes(_require(data, "groupHash"), "groupHash", HASH_LENGTH),
            submitter=_decode_bytes(_require(data, "submitter"), "submitter", SUBMITTER_LENGTH),
            content_hash=_decode_bytes(_require(data, "contentHash"), "contentHash", HASH_LENGTH),
            transaction_hash=transaction_hash.lower(),
            log_index=_decode_int(_require(data, "logIndex"), "logIndex"),
            block_timestamp=_decode_int(_require(data, "blockTimestamp"), "blockTimestamp"),
            block_number=_decode_int(_require(data, "blockNumber"), "blockNumber"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "rootHash": to_hex(self.root_hash),
            "groupHash": to_hex(self.group_hash),
            "submitter": to_hex(self.submitter),
            "contentHash": to_hex(self.content_hash),
            "transactionHash": self.transaction_hash,
            "logIndex": self.log_index,
            "blockTimestamp": self.block_timestamp,
            "blockNumber": self.block_number,
        }


def _require(data: Dict[str, Any], name: str) -> Any:
    if name not in data or data[name] is None:
        raise IndexerValidationError(f"event is missing {name}", field_name=name)
    return data[name]


def _decode_bytes(value: Any, name: str, length: int) -> bytes:
    if not isinstance(value, str):
        raise IndexerValidationError(
            f"{name} must be a hex string", field_name=name, actual_value=value
        )
    try:
        raw = from_hex(value)
    except ValueError as e:
        raise IndexerValidationError(
            f"{name} is not valid hex", field_name=name, actual_value=value
        ) from e
    if len(raw) != length:
        raise IndexerValidationError(
            f"{name} must be {length} bytes, got {len(raw)}",
            field_name=name,
            expected_format=f"0x-prefixed hex, {length} bytes",
            actual_value=value,
        )
    return raw


def _decode_int(value: Any, name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise IndexerValidationError(
            f"{name} must be an integer", field_name=name, actual_value=value
        )
    try:
        number = int(value, 0) if isinstance(value, str) else value
    except ValueError as e:
        raise IndexerValidationError(
            f"{name} must be an integer", field_name=name, actual_value=value
        ) from e
    if number < 0:
        raise IndexerValidationError(
            f"{name} must be non-negative", field_name=name, actual_value=value
        )
    return number


def read_event_log(path: Union[str, Path]) -> Iterator[SubmissionEvent]:
    """Yield events from a JSON Lines file, skipping blank lines."""
    with open(path, "r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except ValueError as e:
                raise IndexerValidationError(
                    f"line {line_number} is not valid JSON: {e}",
                    field_name="line",
                    actual_value=line_number,
                ) from e
            if not isinstance(data, dict):
                raise IndexerValidationError(
                    f"line {line_number} is not a JSON object",
                    field_name="line",
                    actual_value=line_number,
                )
            yield SubmissionEvent.from_dict(data)
