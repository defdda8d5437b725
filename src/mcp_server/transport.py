"""Streamable HTTP transport in stateless mode.

A transport carries exactly one HTTP exchange between a client and one
``MCPServer``. It validates the HTTP request, parses JSON-RPC messages,
dispatches them to the server and picks how the reply goes out:

- buffered ``application/json`` when the server only produces final
  responses (or the client cannot read event streams), or
- ``text/event-stream`` when the server pushes a notification before the
  final result (or the client accepts nothing else).

No session id is generated or expected; each exchange stands alone.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from shared.logging import get_logger
from shared.models import (
    JsonRpcMessage,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    JSONRPC_VERSION,
)
from mcp_server.errors import ErrorCodes, InvalidRequest, rpc_error_response
from mcp_server.protocol import MessageHandler, SUPPORTED_PROTOCOL_VERSIONS

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json"
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"
PROTOCOL_VERSION_HEADER = "mcp-protocol-version"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Outbox item kinds
_RESPONSE = "response"
_NOTIFICATION = "notification"
_END = object()


@dataclass(frozen=True)
class AcceptPolicy:
    """Which reply formats the client's ``Accept`` header allows."""
    json: bool
    event_stream: bool

    @property
    def any(self) -> bool:
        return self.json or self.event_stream

    @classmethod
    def from_header(cls, accept: Optional[str]) -> "AcceptPolicy":
        if not accept or not accept.strip():
            return cls(json=True, event_stream=True)

        ranges = set()
        for part in accept.split(","):
            media_range, *params = [p.strip() for p in part.split(";")]
            if _quality(params) > 0:
                ranges.add(media_range.lower())

        any_type = "*/*" in ranges
        return cls(
            json=any_type or JSON_MEDIA_TYPE in ranges or "application/*" in ranges,
            event_stream=any_type or EVENT_STREAM_MEDIA_TYPE in ranges or "text/*" in ranges,
        )


def _quality(params: list[str]) -> float:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def parse_message(data: Any) -> JsonRpcMessage:
    """
    Parse one JSON-RPC message.

    Raises:
        InvalidRequest: If ``data`` is not a JSON-RPC 2.0 request,
            notification or response
    """
    if not isinstance(data, dict) or data.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequest()

    try:
        if "method" in data:
            if "id" in data:
                return JsonRpcRequest.model_validate(data)
            return JsonRpcNotification.model_validate(data)
        if "result" in data or "error" in data:
            return JsonRpcResponse.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(data=[err["msg"] for err in e.errors()])

    raise InvalidRequest()


def is_initialize_request(message: JsonRpcMessage) -> bool:
    return isinstance(message, JsonRpcRequest) and message.method == "initialize"


def sse_frame(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class StreamableHTTPTransport:
    """
    One-shot transport between an HTTP request and a protocol server.

    ``handle_request`` may be called once. ``close`` cancels any dispatch
    still running and may be called any number of times.
    """

    def __init__(self) -> None:
        self._handler: Optional[MessageHandler] = None
        self._consumed = False
        self._closed = False
        self._pump: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self, handler: MessageHandler) -> None:
        """Called by ``MCPServer.connect`` to receive inbound messages."""
        if self._handler is not None:
            raise RuntimeError("Transport is already connected")
        self._handler = handler

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._pump is not None and not self._pump.done():
            self._pump.cancel()
            await asyncio.wait({self._pump})
        logger.debug("Transport closed")

    async def handle_request(self, request: Request, body: bytes) -> Response:
        """
        Run one exchange and return the HTTP response to send.

        Protocol-level problems come back as JSON-RPC error responses.
        Unexpected failures in the server propagate to the caller.
        """
        if self._consumed:
            raise RuntimeError("Transport has already handled a request")
        self._consumed = True

        if self._handler is None:
            raise RuntimeError("Transport is not connected to a server")
        if self._closed:
            raise RuntimeError("Transport is closed")

        accept = AcceptPolicy.from_header(request.headers.get("accept"))
        if not accept.any:
            return rpc_error_response(
                406,
                ErrorCodes.SERVER_ERROR,
                "Not Acceptable: Client must accept application/json or text/event-stream",
            )

        content_type = request.headers.get("content-type", "")
        if content_type.split(";")[0].strip().lower() != JSON_MEDIA_TYPE:
            return rpc_error_response(
                415,
                ErrorCodes.SERVER_ERROR,
                "Unsupported Media Type: Content-Type must be application/json",
            )

        try:
            raw = json.loads(body)
        except ValueError:
            return rpc_error_response(400, ErrorCodes.PARSE_ERROR, "Parse error")

        batch = isinstance(raw, list)
        items = raw if batch else [raw]
        if not items:
            return rpc_error_response(400, ErrorCodes.INVALID_REQUEST, "Invalid Request")

        try:
            messages = [parse_message(item) for item in items]
        except InvalidRequest as e:
            logger.info("Malformed JSON-RPC envelope", detail=e.data)
            return rpc_error_response(400, ErrorCodes.INVALID_REQUEST, e.message)

        if any(is_initialize_request(m) for m in messages):
            if len(messages) > 1:
                return rpc_error_response(
                    400,
                    ErrorCodes.INVALID_REQUEST,
                    "Invalid Request: Only one initialization request is allowed",
                )
        else:
            version = request.headers.get(PROTOCOL_VERSION_HEADER)
            if version is not None and version not in SUPPORTED_PROTOCOL_VERSIONS:
                return rpc_error_response(
                    400,
                    ErrorCodes.SERVER_ERROR,
                    f"Bad Request: Unsupported protocol version ({version}). "
                    f"Supported versions: {', '.join(SUPPORTED_PROTOCOL_VERSIONS)}",
                )

        if not any(isinstance(m, JsonRpcRequest) for m in messages):
            for message in messages:
                await self._handler(message, self._discard)
            return Response(status_code=202)

        return await self._exchange(messages, batch, accept)

    async def _exchange(
        self,
        messages: list[JsonRpcMessage],
        batch: bool,
        accept: AcceptPolicy,
    ) -> Response:
        outbox: asyncio.Queue = asyncio.Queue()
        self._pump = asyncio.create_task(self._pump_messages(messages, outbox))

        if not accept.json:
            return self._stream_response([], outbox)

        responses: list[dict[str, Any]] = []
        while True:
            item = await outbox.get()
            if item is _END:
                break
            kind, payload = item
            if kind == _NOTIFICATION:
                if accept.event_stream:
                    # The server pushes before finishing: switch to streaming
                    return self._stream_response(responses + [payload], outbox)
                continue
            responses.append(payload)

        # Surfaces any failure of the dispatch
        await self._pump

        content = responses if batch else responses[0]
        return JSONResponse(content=content)

    def _stream_response(self, initial: list[dict[str, Any]], outbox: asyncio.Queue) -> StreamingResponse:
        return StreamingResponse(
            self._events(initial, outbox),
            media_type=EVENT_STREAM_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    async def _events(self, initial: list[dict[str, Any]], outbox: asyncio.Queue) -> AsyncIterator[str]:
        for payload in initial:
            yield sse_frame(payload)

        while True:
            item = await outbox.get()
            if item is _END:
                break
            yield sse_frame(item[1])

        if self._pump is not None and not self._pump.cancelled():
            # Bytes are already on the wire; a failure here aborts the stream
            await self._pump

    async def _pump_messages(self, messages: list[JsonRpcMessage], outbox: asyncio.Queue) -> None:
        tasks = [asyncio.create_task(self._dispatch(m, outbox)) for m in messages]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        finally:
            outbox.put_nowait(_END)

    async def _dispatch(self, message: JsonRpcMessage, outbox: asyncio.Queue) -> None:
        async def notify(payload: dict[str, Any]) -> None:
            outbox.put_nowait((_NOTIFICATION, payload))

        response = await self._handler(message, notify)
        if response is not None:
            outbox.put_nowait((_RESPONSE, response))

    @staticmethod
    async def _discard(payload: dict[str, Any]) -> None:
        return None
