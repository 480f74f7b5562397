"""Tests for the outbound HTTP transport."""

import httpx
import pytest

from traffic_core.transport import HttpTransport, OutboundRequest, TransportError


def make_client(handler):
    return httpx.AsyncClient(base_url="http://payments.test", transport=httpx.MockTransport(handler))


class TestOutboundRequest:
    """Tests for OutboundRequest.for_context()."""

    def test_carries_correlation_headers(self, make_context):
        """Test that request and tenant ids travel as headers."""
        ctx = make_context(method="POST", uri="/api/payments", request_body='{"data":"x"}')

        request = OutboundRequest.for_context(ctx)

        assert request.method == "POST"
        assert request.uri == "/api/payments"
        assert request.headers["X-Request-Id"] == ctx.request_id
        assert request.headers["X-Tenant-Id"] == "tenant1"
        assert request.body == '{"data":"x"}'


class TestHttpTransport:
    """Tests for HttpTransport.send()."""

    async def test_send_post(self):
        """Test that POST sends headers and body and returns the response."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["request_id"] = request.headers["X-Request-Id"]
            seen["body"] = request.content.decode()
            return httpx.Response(201, text='{"id":"p1"}')

        transport = HttpTransport("http://payments.test", client=make_client(handler))
        response = await transport.send(
            OutboundRequest("POST", "/api/payments", {"X-Request-Id": "r1"}, '{"data":"v"}')
        )

        assert response.status == 201
        assert response.body == '{"id":"p1"}'
        assert seen == {
            "method": "POST",
            "path": "/api/payments",
            "request_id": "r1",
            "body": '{"data":"v"}',
        }

    async def test_get_sends_no_body(self):
        """Test that GET never carries a body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(404, text='{"error":"payment_not_found"}')

        transport = HttpTransport("http://payments.test", client=make_client(handler))
        response = await transport.send(OutboundRequest("GET", "/api/payments/abc", body="ignored"))

        assert response.status == 404
        assert seen["body"] == b""

    async def test_connection_failure_raises_transport_error(self):
        """Test that connection errors are wrapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = HttpTransport("http://payments.test", client=make_client(handler))

        with pytest.raises(TransportError, match="connection refused"):
            await transport.send(OutboundRequest("GET", "/api/payments"))

    async def test_close_leaves_injected_client_open(self):
        """Test that an injected client is not closed by the transport."""
        client = make_client(lambda request: httpx.Response(200))
        transport = HttpTransport("http://payments.test", client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()

    async def test_close_owned_client(self):
        """Test that a transport-created client is closed."""
        transport = HttpTransport("http://payments.test")

        await transport.close()

        assert transport._client.is_closed
