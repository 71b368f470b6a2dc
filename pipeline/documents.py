"""
Property Indexer - Document Parsing and Typed Lookups

Linked documents are JSON objects. Instead of chains of nullable checks,
every parse and field lookup returns a LookupResult that either holds a
value or names exactly why it does not.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence


class ResolutionErrorKind(Enum):
    """Why a parse or lookup produced no value."""

    FETCH_FAILED = "fetch_failed"
    PARSE_FAILED = "parse_failed"
    FIELD_MISSING = "field_missing"
    FIELD_NULL = "field_null"
    # Present but the wrong JSON type (e.g. a number where a link is expected)
    FIELD_TYPE = "field_type"


@dataclass(frozen=True)
class LookupResult:
    """Either a value (ok) or an error kind with a short detail."""

    value: Any = None
    error: Optional[ResolutionErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "LookupResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ResolutionErrorKind, detail: str = "") -> "LookupResult":
        return cls(error=error, detail=detail)


def parse_document(payload: bytes) -> LookupResult:
    """Parse bytes as a JSON object."""
    try:
        document = json.loads(payload)
    except (ValueError, RecursionError) as e:
        return LookupResult.failure(ResolutionErrorKind.PARSE_FAILED, f"invalid JSON: {e}")

    if not isinstance(document, dict):
        return LookupResult.failure(
            ResolutionErrorKind.PARSE_FAILED,
            f"expected a JSON object, got {type(document).__name__}",
        )
    return LookupResult.success(document)


def lookup(document: Dict[str, Any], path: Sequence[str]) -> LookupResult:
    """
    Walk nested objects along path.

    Missing keys give FIELD_MISSING, JSON nulls FIELD_NULL, and stepping
    into something that is not an object FIELD_TYPE.
    """
    current: Any = document
    walked = []
    for name in path:
        if not isinstance(current, dict):
            return LookupResult.failure(
                ResolutionErrorKind.FIELD_TYPE,
                f"{'.'.join(walked) or '<root>'} is not an object",
            )
        walked.append(name)
        if name not in current:
            return LookupResult.failure(ResolutionErrorKind.FIELD_MISSING, ".".join(walked))
        current = current[name]
        if current is None:
            return LookupResult.failure(ResolutionErrorKind.FIELD_NULL, ".".join(walked))
    return LookupResult.success(current)


def lookup_string(document: Dict[str, Any], path: Sequence[str]) -> LookupResult:
    """lookup() that additionally requires the value to be a string."""
    result = lookup(document, path)
    if result.ok and not isinstance(result.value, str):
        return LookupResult.failure(
            ResolutionErrorKind.FIELD_TYPE,
            f"{'.'.join(path)} is {type(result.value).__name__}, expected str",
        )
    return result


def value_as_text(value: Any) -> str:
    """Strings as-is; any other JSON value as compact JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
