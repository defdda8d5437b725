"""Request lifecycle coordination.

Drives one HTTP request through::

    START -> AUTH_RESOLVED -> INSTANCE_CREATED -> TRANSPORT_CONNECTED -> HANDLING
          -> COMPLETED | CLIENT_CLOSED | FAILED -> TORN_DOWN

and guarantees the server instance and transport are released exactly
once, whether the exchange completes, fails, or the client goes away.
Teardown can be triggered from three places (the handler itself, the end
of a stream, and the disconnect watcher); a one-shot flag makes every call
after the first a no-op.
"""

import asyncio
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from shared.logging import get_logger
from shared.models import Credentials
from mcp_server.errors import internal_error_response
from mcp_server.factory import ServerFactory
from mcp_server.protocol import MCPServer
from mcp_server.transport import StreamableHTTPTransport

logger = get_logger(__name__)

# Sent when the client is already gone; nobody reads it
CLIENT_CLOSED_STATUS = 499

TransportFactory = Callable[[], StreamableHTTPTransport]


class LifecycleState(str, Enum):
    START = "start"
    AUTH_RESOLVED = "auth_resolved"
    INSTANCE_CREATED = "instance_created"
    TRANSPORT_CONNECTED = "transport_connected"
    HANDLING = "handling"
    COMPLETED = "completed"
    CLIENT_CLOSED = "client_closed"
    FAILED = "failed"
    TORN_DOWN = "torn_down"


class RequestLifecycle:
    """
    Owns the server instance and transport of one HTTP request.

    Usage:
        lifecycle = RequestLifecycle(request, server_factory)
        return await lifecycle.run(credentials, body)
    """

    def __init__(
        self,
        request: Request,
        server_factory: ServerFactory,
        transport_factory: TransportFactory = StreamableHTTPTransport,
    ) -> None:
        self._request = request
        self._server_factory = server_factory
        self._transport_factory = transport_factory

        self.state = LifecycleState.START
        self.server: Optional[MCPServer] = None
        self.transport: Optional[StreamableHTTPTransport] = None

        self._torn_down = False
        self._handling: Optional[asyncio.Task] = None
        self._watcher: Optional[asyncio.Task] = None

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def _advance(self, state: LifecycleState) -> None:
        logger.debug("Lifecycle transition", previous=self.state.value, state=state.value)
        self.state = state

    async def run(self, credentials: Credentials, body: bytes) -> Response:
        """
        Serve the request with a fresh server instance and transport.

        Args:
            credentials: Credentials resolved for this request
            body: Raw request body, already read from the client
        """
        self._advance(LifecycleState.AUTH_RESOLVED)

        try:
            self.server = self._server_factory(credentials)
            self._advance(LifecycleState.INSTANCE_CREATED)

            self.transport = self._transport_factory()
            await self.server.connect(self.transport)
            self._advance(LifecycleState.TRANSPORT_CONNECTED)
        except Exception:
            logger.error("Failed to set up MCP server for request", exc_info=True)
            self._advance(LifecycleState.FAILED)
            await self.teardown()
            return internal_error_response()

        self._advance(LifecycleState.HANDLING)
        self._watcher = asyncio.create_task(self._watch_disconnect())
        self._handling = asyncio.create_task(
            self.transport.handle_request(self._request, body)
        )

        try:
            await asyncio.wait(
                {self._handling, self._watcher},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            self._advance(LifecycleState.CLIENT_CLOSED)
            await asyncio.shield(self.teardown())
            raise

        if self._torn_down:
            # The disconnect watcher won the race and may still be closing
            await asyncio.wait({self._watcher})
            return Response(status_code=CLIENT_CLOSED_STATUS)
        if self._handling.cancelled():
            self._advance(LifecycleState.CLIENT_CLOSED)
            await self.teardown()
            return Response(status_code=CLIENT_CLOSED_STATUS)

        try:
            response = self._handling.result()
        except Exception:
            logger.error("Error handling MCP request", exc_info=True)
            self._advance(LifecycleState.FAILED)
            await self.teardown()
            return internal_error_response()

        if isinstance(response, StreamingResponse):
            # Teardown moves to the end of the stream; the watcher stays armed
            response.body_iterator = self._guard_stream(response.body_iterator)
            return response

        self._advance(LifecycleState.COMPLETED)
        await self.teardown()
        return response

    async def teardown(self) -> None:
        """Close transport and server. Every call after the first is a no-op."""
        if self._torn_down:
            return
        self._torn_down = True

        current = asyncio.current_task()
        pending = [
            task for task in (self._handling, self._watcher)
            if task is not None and task is not current and not task.done()
        ]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)

        if self.transport is not None:
            try:
                await self.transport.close()
            except Exception:
                logger.error("Failed to close transport", exc_info=True)

        if self.server is not None:
            try:
                await self.server.close()
            except Exception:
                logger.error("Failed to close server instance", exc_info=True)

        self._advance(LifecycleState.TORN_DOWN)

    async def _watch_disconnect(self) -> None:
        """Cleanup hook armed when handling starts; fires on client disconnect."""
        while True:
            message = await self._request.receive()
            if message["type"] == "http.disconnect":
                break

        if self._torn_down:
            return

        logger.info("Request closed by client")
        self._advance(LifecycleState.CLIENT_CLOSED)
        await self.teardown()

    async def _guard_stream(self, body: AsyncIterator) -> AsyncIterator:
        try:
            async for chunk in body:
                yield chunk
        except asyncio.CancelledError:
            self._advance(LifecycleState.CLIENT_CLOSED)
            raise
        except Exception:
            # Headers and some events are already sent; no envelope is possible
            logger.error("MCP stream failed after response started", exc_info=True)
            self._advance(LifecycleState.FAILED)
            raise
        else:
            if not self._torn_down:
                self._advance(LifecycleState.COMPLETED)
        finally:
            # The server may keep cancelling this task; let teardown finish regardless
            await asyncio.shield(self.teardown())
