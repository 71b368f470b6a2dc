"""
Property Indexer - Link Resolver

Recovers a property's jurisdiction by following three documents:

    property document  relationships.property_seed["/"]  -> seed cid
    seed document      to["/"]                           -> target cid
    target document    county_jurisdiction               -> jurisdiction

Each hop is fetch, parse, extract. The first hop that fails ends the
resolution; there is no partial result and no retry across hops (each
fetch retries on its own).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from opentelemetry import trace

from core.cid import derive_content_id, to_hex
from integrations.content_fetcher import ContentFetcher
from observability.logging import get_logger
from observability.metrics import record_resolution
from pipeline.documents import (
    LookupResult,
    ResolutionErrorKind,
    lookup_string,
    parse_document,
)

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class Hop:
    """One link in the chain: which document, and where its link lives."""

    name: str
    path: Tuple[str, ...]


RESOLUTION_HOPS: Tuple[Hop, ...] = (
    Hop("property", ("relationships", "property_seed", "/")),
    Hop("property_seed", ("to", "/")),
    Hop("target", ("county_jurisdiction",)),
)


@dataclass(frozen=True)
class HopTrace:
    hop: str
    cid: str
    result: LookupResult


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of a full resolution, with a trace of every hop attempted."""

    root_cid: str
    jurisdiction: Optional[str] = None
    error: Optional[ResolutionErrorKind] = None
    failed_hop: Optional[str] = None
    hops: Tuple[HopTrace, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.error is None


class LinkResolver:
    """
    Walks the property -> seed -> target chain for a root hash.

    Usage:
        resolver = LinkResolver(fetcher)
        jurisdiction = resolver.resolve_jurisdiction(root_hash)
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        max_attempts: Optional[int] = None,
        hops: Tuple[Hop, ...] = RESOLUTION_HOPS,
    ):
        self.fetcher = fetcher
        self.max_attempts = max_attempts
        self.hops = hops

    def resolve_jurisdiction(self, root_hash: bytes) -> Optional[str]:
        """Jurisdiction for root_hash, or None if any hop fails."""
        return self.resolve(root_hash).jurisdiction

    def resolve(self, root_hash: bytes) -> ResolutionOutcome:
        root_cid = derive_content_id(root_hash)
        root_hex = to_hex(root_hash)

        with tracer.start_as_current_span("jurisdiction.resolve") as span:
            span.set_attribute("property.root_hash", root_hex)
            span.set_attribute("content.cid", root_cid)

            traces = []
            cid = root_cid
            for hop in self.hops:
                result = self._follow(hop, cid)
                traces.append(HopTrace(hop=hop.name, cid=cid, result=result))

                if not result.ok:
                    logger.warning(
                        "Jurisdiction resolution failed",
                        root_hash=root_hex,
                        hop=hop.name,
                        cid=cid,
                        error_kind=result.error.value,
                        detail=result.detail,
                    )
                    span.set_attribute("resolution.failed_hop", hop.name)
                    span.set_attribute("resolution.error", result.error.value)
                    record_resolution(result.error.value)
                    return ResolutionOutcome(
                        root_cid=root_cid,
                        error=result.error,
                        failed_hop=hop.name,
                        hops=tuple(traces),
                    )

                logger.info(
                    "Link followed",
                    root_hash=root_hex,
                    hop=hop.name,
                    cid=cid,
                    value=result.value,
                )
                cid = result.value

            jurisdiction = cid
            span.set_attribute("resolution.jurisdiction", jurisdiction)

        logger.info("Jurisdiction resolved", root_hash=root_hex, jurisdiction=jurisdiction)
        record_resolution("resolved")
        return ResolutionOutcome(
            root_cid=root_cid,
            jurisdiction=jurisdiction,
            hops=tuple(traces),
        )

    def _follow(self, hop: Hop, cid: str) -> LookupResult:
        """Fetch, parse and extract for a single hop."""
        payload = self.fetcher.fetch(cid, self.max_attempts)
        if payload is None:
            return LookupResult.failure(ResolutionErrorKind.FETCH_FAILED, cid)

        parsed = parse_document(payload)
        if not parsed.ok:
            return parsed

        return lookup_string(parsed.value, hop.path)
