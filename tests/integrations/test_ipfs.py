"""
Tests for integrations/ipfs.py - HTTP Transports.

Covers:
- Kubo RPC request shape
- Gateway request shape
- Error mapping to IndexerFetchError
- Transport selection
"""
import httpx
import pytest

from core.errors import IndexerFetchError


CID = "bafkreihdwdcefgh4dqkjv67uzcmw7ojee6xedzdetojuzjevtenxquvyku"


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestKuboRpcTransport:
    """Tests for KuboRpcTransport."""

    def test_cat_posts_to_rpc_api(self):
        from integrations.ipfs import KuboRpcTransport

        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"label": "County"}')

        transport = KuboRpcTransport("http://node:5001/", client=_client(handler))

        assert transport.cat(CID) == b'{"label": "County"}'
        (request,) = seen
        assert request.method == "POST"
        assert request.url.path == "/api/v0/cat"
        assert request.url.params["arg"] == CID

    def test_http_error_status(self):
        from integrations.ipfs import KuboRpcTransport

        transport = KuboRpcTransport(
            "http://node:5001", client=_client(lambda r: httpx.Response(500, text="merkledag: not found"))
        )

        with pytest.raises(IndexerFetchError) as exc_info:
            transport.cat(CID)

        assert exc_info.value.status_code == 500
        assert exc_info.value.content_id == CID

    def test_timeout(self):
        from integrations.ipfs import KuboRpcTransport

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = KuboRpcTransport("http://node:5001", client=_client(handler))

        with pytest.raises(IndexerFetchError, match="timed out"):
            transport.cat(CID)

    def test_connection_error(self):
        from integrations.ipfs import KuboRpcTransport

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        transport = KuboRpcTransport("http://node:5001", client=_client(handler))

        with pytest.raises(IndexerFetchError) as exc_info:
            transport.cat(CID)

        assert isinstance(exc_info.value.cause, httpx.ConnectError)


class TestGatewayTransport:
    """Tests for GatewayTransport."""

    def test_cat_gets_raw_block(self):
        from integrations.ipfs import GatewayTransport

        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"raw")

        transport = GatewayTransport("https://gw.example", client=_client(handler))

        assert transport.cat(CID) == b"raw"
        (request,) = seen
        assert request.method == "GET"
        assert request.url.path == f"/ipfs/{CID}"
        assert request.headers["accept"] == "application/vnd.ipld.raw"

    def test_not_found(self):
        from integrations.ipfs import GatewayTransport

        transport = GatewayTransport(
            "https://gw.example", client=_client(lambda r: httpx.Response(404))
        )

        with pytest.raises(IndexerFetchError) as exc_info:
            transport.cat(CID)

        assert exc_info.value.status_code == 404


class TestBuildTransport:
    """Tests for build_transport."""

    def test_rpc_by_default(self):
        from integrations.ipfs import KuboRpcTransport, build_transport

        with build_transport("http://127.0.0.1:5001") as transport:
            assert isinstance(transport, KuboRpcTransport)

    def test_gateway_when_configured(self):
        from integrations.ipfs import GatewayTransport, build_transport

        with build_transport("http://127.0.0.1:5001", "https://gw.example") as transport:
            assert isinstance(transport, GatewayTransport)
            assert transport.base_url == "https://gw.example"

    def test_satisfies_protocol(self):
        from integrations.ipfs import ContentTransport, KuboRpcTransport

        with KuboRpcTransport("http://127.0.0.1:5001") as transport:
            assert isinstance(transport, ContentTransport)
