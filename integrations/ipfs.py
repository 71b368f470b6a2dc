"""
Property Indexer - IPFS Transports

Single-shot content reads over HTTP. Retrying is the fetcher's job; a
transport performs exactly one request per call and raises IndexerFetchError
when it cannot return the content bytes.

Two transports are provided:
- KuboRpcTransport: POST {api_url}/api/v0/cat?arg={cid} against a local node
- GatewayTransport: GET {gateway_url}/ipfs/{cid} against a trustless gateway
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

import httpx

from core.errors import IndexerFetchError


@runtime_checkable
class ContentTransport(Protocol):
    """Fetches the bytes addressed by a content identifier, once."""

    def cat(self, cid: str) -> Optional[bytes]:
        """Return the content, or raise / return None on failure."""
        ...


class _HttpTransport:
    """Shared httpx plumbing for both transports."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def _request(self, method: str, url: str, cid: str, **kwargs) -> bytes:
        try:
            response = self._client.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise IndexerFetchError(
                f"timed out reading {cid}", content_id=cid, cause=e
            ) from e
        except httpx.HTTPStatusError as e:
            raise IndexerFetchError(
                f"HTTP {e.response.status_code} reading {cid}",
                content_id=cid,
                status_code=e.response.status_code,
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise IndexerFetchError(
                f"request error reading {cid}: {e}", content_id=cid, cause=e
            ) from e
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()


class KuboRpcTransport(_HttpTransport):
    """Reads content through a Kubo node's RPC API."""

    def cat(self, cid: str) -> bytes:
        return self._request(
            "POST", f"{self.base_url}/api/v0/cat", cid, params={"arg": cid}
        )


class GatewayTransport(_HttpTransport):
    """Reads raw blocks through an HTTP gateway."""

    def cat(self, cid: str) -> bytes:
        return self._request(
            "GET",
            f"{self.base_url}/ipfs/{cid}",
            cid,
            headers={"Accept": "application/vnd.ipld.raw"},
        )


def build_transport(
    api_url: str,
    gateway_url: Optional[str] = None,
    timeout: float = 30.0,
) -> _HttpTransport:
    """Gateway transport when a gateway is configured, RPC otherwise."""
    if gateway_url:
        return GatewayTransport(gateway_url, timeout=timeout)
    return KuboRpcTransport(api_url, timeout=timeout)
