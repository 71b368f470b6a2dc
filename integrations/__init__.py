"""
Property Indexer - External Integrations

Client side of the content-addressed storage network:
- ipfs: single-request HTTP transports (Kubo RPC, gateway)
- content_fetcher: bounded retry over a transport
"""
from integrations.content_fetcher import ContentFetcher
from integrations.ipfs import (
    ContentTransport,
    GatewayTransport,
    KuboRpcTransport,
    build_transport,
)

__all__ = [
    "ContentFetcher",
    "ContentTransport",
    "GatewayTransport",
    "KuboRpcTransport",
    "build_transport",
]
