"""MCP protocol server.

An ``MCPServer`` answers the JSON-RPC methods of the Model Context Protocol
for one HTTP exchange. It is created per request with tool handlers bound
to that request's credentials, connected to exactly one transport, and
closed when the exchange ends.
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

from shared.logging import get_logger
from shared.models import (
    JSONRPC_VERSION,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcMessage,
    RequestId,
    ToolResultStatus,
)
from mcp_server.errors import InvalidParams, MCPError, MethodNotFound
from mcp_server.router import ToolRouter

logger = get_logger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

# Sends one server-to-client message within the current exchange
Notify = Callable[[dict[str, Any]], Awaitable[None]]
MessageHandler = Callable[[JsonRpcMessage, Notify], Awaitable[Optional[dict[str, Any]]]]


class Closeable(Protocol):
    async def close(self) -> None: ...


class ServerTransport(Protocol):
    async def start(self, handler: MessageHandler) -> None: ...

    async def close(self) -> None: ...


@dataclass
class RequestContext:
    """Per-call context handed to method handlers."""
    request_id: RequestId
    notify: Notify
    progress_token: Optional[str | int] = None

    async def report_progress(self, progress: float, total: float, message: str) -> None:
        """Push a progress notification if the caller asked for progress."""
        if self.progress_token is None:
            return
        await self.notify({
            "jsonrpc": JSONRPC_VERSION,
            "method": "notifications/progress",
            "params": {
                "progressToken": self.progress_token,
                "progress": progress,
                "total": total,
                "message": message,
            },
        })


class MCPServer:
    """
    Protocol server for a single request.

    Handles ``initialize``, ``ping``, ``tools/list`` and ``tools/call``.
    Resources passed in ``owned`` (the upstream API client) are closed with
    the server.
    """

    def __init__(
        self,
        name: str,
        version: str,
        router: ToolRouter,
        owned: Optional[list[Closeable]] = None,
        instructions: Optional[str] = None
    ) -> None:
        self.name = name
        self.version = version
        self.router = router
        self.instructions = instructions
        self._owned = list(owned or [])
        self._transport: Optional[ServerTransport] = None
        self._closed = False

        self._methods: dict[str, Callable[[dict[str, Any], RequestContext], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self, transport: ServerTransport) -> None:
        """Attach this server to a transport; a server serves one transport only."""
        if self._transport is not None:
            raise RuntimeError("Server is already connected to a transport")
        if self._closed:
            raise RuntimeError("Server is closed")

        self._transport = transport
        await transport.start(self.handle_message)

    async def close(self) -> None:
        """Release owned resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        for resource in self._owned:
            await resource.close()
        logger.debug("Server instance closed", server=self.name)

    async def handle_message(
        self,
        message: JsonRpcMessage,
        notify: Notify
    ) -> Optional[dict[str, Any]]:
        """
        Handle one inbound message.

        Returns:
            The response envelope for a request, None for notifications and
            client responses
        """
        if isinstance(message, JsonRpcRequest):
            return await self._handle_request(message, notify)

        if isinstance(message, JsonRpcNotification):
            logger.debug("Notification received", method=message.method)
        return None

    async def _handle_request(self, request: JsonRpcRequest, notify: Notify) -> dict[str, Any]:
        params = request.params or {}
        meta = params.get("_meta") or {}
        context = RequestContext(
            request_id=request.id,
            notify=notify,
            progress_token=meta.get("progressToken") if isinstance(meta, dict) else None,
        )

        try:
            method = self._methods.get(request.method)
            if method is None:
                raise MethodNotFound(f"Method not found: {request.method}")
            result = await method(params, context)
        except MCPError as e:
            logger.info("Request rejected", method=request.method, code=e.code, error=e.message)
            return JsonRpcResponse(id=request.id, error=e.to_error()).to_dict()

        return JsonRpcResponse(id=request.id, result=result).to_dict()

    async def _initialize(self, params: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION

        result: dict[str, Any] = {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.name, "version": self.version},
        }
        if self.instructions:
            result["instructions"] = self.instructions
        return result

    async def _ping(self, params: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        return {"tools": self.router.registry.get_tools_for_mcp()}

    async def _call_tool(self, params: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(name, str) or not name:
            raise InvalidParams("Tool name is required")
        if not isinstance(arguments, dict):
            raise InvalidParams("Tool arguments must be an object")

        await context.report_progress(0, 1, f"Calling {name}")
        result = await self.router.execute(name, arguments, request_id=str(context.request_id))
        await context.report_progress(1, 1, f"{name} finished")

        if result.status in (ToolResultStatus.NOT_FOUND, ToolResultStatus.VALIDATION_ERROR):
            raise InvalidParams(result.error)

        if not result.ok:
            return {
                "content": [{"type": "text", "text": result.error or "Tool execution failed"}],
                "isError": True,
            }

        return {
            "content": [{"type": "text", "text": json.dumps(result.data, ensure_ascii=False)}],
            "isError": False,
        }
