"""Tests for per-request lifecycle and teardown."""

import asyncio
import json

import pytest

from shared.models import JsonRpcRequest
from mcp_server.transport import StreamableHTTPTransport


class FakeServer:
    """Protocol server stand-in that counts closes."""

    def __init__(self, handler):
        self._handler = handler
        self.close_calls = 0

    async def connect(self, transport):
        await transport.start(self._handler)

    async def close(self):
        self.close_calls += 1


class CountingTransport(StreamableHTTPTransport):
    def __init__(self):
        super().__init__()
        self.close_calls = 0

    async def close(self):
        self.close_calls += 1
        await super().close()


def _body(method="tools/list", **params) -> bytes:
    return json.dumps({"jsonrpc": "2.0", "id": "1", "method": method, "params": params}).encode()


async def answer(message, notify):
    if isinstance(message, JsonRpcRequest):
        return {"jsonrpc": "2.0", "id": message.id, "result": {}}
    return None


async def answer_with_progress(message, notify):
    await notify({"jsonrpc": "2.0", "method": "notifications/progress", "params": {"progress": 0}})
    await notify({"jsonrpc": "2.0", "method": "notifications/progress", "params": {"progress": 1}})
    return {"jsonrpc": "2.0", "id": message.id, "result": {"done": True}}


class TestRequestLifecycle:
    """Tests for the request lifecycle coordinator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.servers = []
        self.transports = []

    def _lifecycle(self, request, handler=answer):
        from mcp_server.lifecycle import RequestLifecycle

        def server_factory(credentials):
            server = FakeServer(handler)
            self.servers.append(server)
            return server

        def transport_factory():
            transport = CountingTransport()
            self.transports.append(transport)
            return transport

        return RequestLifecycle(request, server_factory, transport_factory)

    def _assert_released_once(self):
        assert [s.close_calls for s in self.servers] == [1]
        assert [t.close_calls for t in self.transports] == [1]

    @pytest.mark.asyncio
    async def test_completed_request_torn_down_once(self, make_request, credentials):
        """Test that a buffered exchange tears down before returning."""
        from mcp_server.lifecycle import LifecycleState

        lifecycle = self._lifecycle(make_request())

        response = await lifecycle.run(credentials, _body())
        await lifecycle.teardown()

        assert response.status_code == 200
        assert lifecycle.state == LifecycleState.TORN_DOWN
        assert lifecycle.torn_down
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_fresh_instances_per_request(self, make_request, credentials):
        """Test that every lifecycle builds its own server and transport."""
        for _ in range(3):
            await self._lifecycle(make_request()).run(credentials, _body())

        assert len(self.servers) == 3
        assert len({id(s) for s in self.servers}) == 3
        assert len({id(t) for t in self.transports}) == 3

    @pytest.mark.asyncio
    async def test_setup_failure_returns_500(self, make_request, credentials):
        """Test that a failing server factory yields -32603 and no instance."""
        from mcp_server.lifecycle import LifecycleState, RequestLifecycle

        def broken_factory(credentials):
            raise RuntimeError("cannot build")

        lifecycle = RequestLifecycle(make_request(), broken_factory)

        response = await lifecycle.run(credentials, _body())

        assert response.status_code == 500
        payload = json.loads(response.body)
        assert payload == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32603, "message": "Internal server error"},
        }
        assert lifecycle.server is None
        assert lifecycle.state == LifecycleState.TORN_DOWN

    @pytest.mark.asyncio
    async def test_handling_failure_returns_500(self, make_request, credentials):
        """Test that an unexpected handler exception yields 500 and teardown."""

        async def broken(message, notify):
            raise RuntimeError("boom")

        lifecycle = self._lifecycle(make_request(), broken)

        response = await lifecycle.run(credentials, _body())

        assert response.status_code == 500
        assert json.loads(response.body)["error"]["code"] == -32603
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_client_disconnect_mid_exchange(self, make_request, credentials):
        """Test that a disconnect tears down once even if completion fires later."""
        from mcp_server.lifecycle import CLIENT_CLOSED_STATUS, LifecycleState

        started = asyncio.Event()
        gone = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow(message, notify):
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def receive():
            await gone.wait()
            return {"type": "http.disconnect"}

        lifecycle = self._lifecycle(make_request(receive=receive), slow)
        running = asyncio.create_task(lifecycle.run(credentials, _body("tools/call")))
        await started.wait()

        gone.set()
        response = await running
        await lifecycle.teardown()

        assert response.status_code == CLIENT_CLOSED_STATUS
        assert cancelled.is_set()
        assert lifecycle.state == LifecycleState.TORN_DOWN
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_stream_teardown_after_last_event(self, make_request, credentials):
        """Test that a streamed exchange tears down once the stream ends."""
        from mcp_server.lifecycle import LifecycleState

        lifecycle = self._lifecycle(make_request(), answer_with_progress)

        response = await lifecycle.run(credentials, _body("tools/call"))
        assert response.media_type == "text/event-stream"
        assert not lifecycle.torn_down

        frames = [chunk async for chunk in response.body_iterator]
        await lifecycle.teardown()

        assert len(frames) == 3
        assert json.loads(frames[-1][len("data: "):])["result"] == {"done": True}
        assert lifecycle.state == LifecycleState.TORN_DOWN
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_stream_abandoned_by_client(self, make_request, credentials):
        """Test that closing the stream early still releases everything once."""
        gone = asyncio.Event()

        async def receive():
            await gone.wait()
            return {"type": "http.disconnect"}

        async def progress_then_hang(message, notify):
            await notify({"jsonrpc": "2.0", "method": "notifications/progress", "params": {}})
            await asyncio.Event().wait()

        lifecycle = self._lifecycle(make_request(receive=receive), progress_then_hang)

        response = await lifecycle.run(credentials, _body("tools/call"))
        body = response.body_iterator
        first = await body.__anext__()
        assert first.startswith("data: ")

        await body.aclose()
        gone.set()
        await asyncio.sleep(0)
        await lifecycle.teardown()

        assert lifecycle.torn_down
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_teardown_is_idempotent(self, make_request, credentials):
        """Test that concurrent teardown calls and a late stream end release once."""
        lifecycle = self._lifecycle(make_request(), answer_with_progress)
        response = await lifecycle.run(credentials, _body("tools/call"))

        await asyncio.gather(lifecycle.teardown(), lifecycle.teardown(), lifecycle.teardown())
        frames = [chunk async for chunk in response.body_iterator]

        assert frames
        self._assert_released_once()

    @pytest.mark.asyncio
    async def test_close_errors_are_contained(self, make_request, credentials):
        """Test that a failing server close does not escape teardown."""

        class ExplodingServer(FakeServer):
            async def close(self):
                await super().close()
                raise RuntimeError("close failed")

        from mcp_server.lifecycle import LifecycleState, RequestLifecycle

        server = ExplodingServer(answer)
        lifecycle = RequestLifecycle(make_request(), lambda credentials: server)

        response = await lifecycle.run(credentials, _body())

        assert response.status_code == 200
        assert server.close_calls == 1
        assert lifecycle.state == LifecycleState.TORN_DOWN
