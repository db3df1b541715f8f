"""Tests for the aiohttp transport against a local test server."""

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from offline_sync_queue.exceptions import TransportError
from offline_sync_queue.transport import AiohttpTransport


def make_app(received: list) -> web.Application:
    async def create_expense(request: web.Request) -> web.Response:
        body = await request.json()
        received.append(("POST", request.path, body, request.headers.get("Authorization")))
        return web.json_response({"id": "e-1", **body}, status=201)

    async def update_budget(request: web.Request) -> web.Response:
        received.append(("PUT", request.path, await request.json(), None))
        return web.json_response({"error": "limit must be positive"}, status=422)

    async def delete_goal(request: web.Request) -> web.Response:
        received.append(("DELETE", request.path, None, None))
        return web.Response(status=204)

    async def plain_text(request: web.Request) -> web.Response:
        return web.Response(text="maintenance", status=503)

    app = web.Application()
    app.router.add_post("/api/expenses", create_expense)
    app.router.add_put("/api/budgets/{id}", update_budget)
    app.router.add_delete("/api/goals/{id}", delete_goal)
    app.router.add_post("/api/meals", plain_text)
    return app


@pytest.fixture
def received() -> list:
    return []


@pytest.fixture
async def server(received):
    test_server = TestServer(make_app(received))
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
async def http_transport(server):
    transport = AiohttpTransport(str(server.make_url("/")), auth_token="token-123", timeout_s=5)
    yield transport
    await transport.close()


class TestAiohttpTransport:
    @pytest.mark.asyncio
    async def test_post_success(self, received, http_transport):
        response = await http_transport.send("/api/expenses", "POST", {"amount": 75000})

        assert response.ok
        assert response.status == 201
        assert response.json() == {"id": "e-1", "amount": 75000}
        assert received == [("POST", "/api/expenses", {"amount": 75000}, "Bearer token-123")]

    @pytest.mark.asyncio
    async def test_error_status_is_a_response(self, http_transport):
        response = await http_transport.send("/api/budgets/b1", "PUT", {"id": "b1", "limit": -1})

        assert not response.ok
        assert response.status == 422
        assert response.json() == {"error": "limit must be positive"}

    @pytest.mark.asyncio
    async def test_delete_without_body(self, received, http_transport):
        response = await http_transport.send("/api/goals/g1", "DELETE")

        assert response.ok
        assert response.status == 204
        assert response.json() is None
        assert received[-1][:2] == ("DELETE", "/api/goals/g1")

    @pytest.mark.asyncio
    async def test_non_json_body_kept_as_text(self, http_transport):
        response = await http_transport.send("/api/meals", "POST", {})

        assert response.status == 503
        assert response.json() is None
        assert response.text == "maintenance"

    @pytest.mark.asyncio
    async def test_unreachable_host_raises_transport_error(self, unused_tcp_port):
        transport = AiohttpTransport(f"http://127.0.0.1:{unused_tcp_port}", timeout_s=2)
        try:
            with pytest.raises(TransportError) as exc_info:
                await transport.send("/api/expenses", "POST", {})
            assert exc_info.value.method == "POST"
            assert exc_info.value.path == "/api/expenses"
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_external_session_not_closed(self, server):
        async with aiohttp.ClientSession() as session:
            transport = AiohttpTransport(str(server.make_url("/")), session=session)
            await transport.send("/api/goals/g2", "DELETE")
            await transport.close()

            assert not session.closed
