"""JSON-RPC error codes, exceptions and error envelopes."""

from enum import IntEnum
from typing import Any, Optional

from starlette.responses import JSONResponse

from shared.models import JsonRpcErrorObject, JsonRpcResponse, RequestId


class ErrorCodes(IntEnum):
    """JSON-RPC 2.0 error codes used by the server."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server-defined range
    SERVER_ERROR = -32000
    AUTHENTICATION_REQUIRED = -32001


class MCPError(Exception):
    """Base exception carrying a JSON-RPC error code."""

    code: int = ErrorCodes.INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None, data: Any = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_error(self) -> JsonRpcErrorObject:
        return JsonRpcErrorObject(code=self.code, message=self.message, data=self.data)


class InvalidRequest(MCPError):
    """The JSON sent is not a valid JSON-RPC message."""
    code = ErrorCodes.INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFound(MCPError):
    """The method does not exist or is not available."""
    code = ErrorCodes.METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParams(MCPError):
    """Invalid method parameters."""
    code = ErrorCodes.INVALID_PARAMS
    default_message = "Invalid params"


class AuthFailure(Exception):
    """Base class for credential resolution failures."""

    message = "Authentication failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class MissingCredentials(AuthFailure):
    """No Authorization header and no default credentials configured."""
    message = "Authentication required. Provide DataForSEO credentials."


class InvalidCredentials(AuthFailure):
    """A Basic Authorization header that does not carry a username and password."""
    message = "Invalid credentials"


def error_envelope(
    code: int,
    message: str,
    request_id: Optional[RequestId] = None,
    data: Any = None,
) -> dict[str, Any]:
    """Build a JSON-RPC error envelope."""
    return JsonRpcResponse(
        id=request_id,
        error=JsonRpcErrorObject(code=code, message=message, data=data),
    ).to_dict()


def rpc_error_response(
    status_code: int,
    code: int,
    message: str,
    request_id: Optional[RequestId] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """HTTP response whose body is a single JSON-RPC error envelope."""
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(code, message, request_id),
        headers=headers,
    )


def internal_error_response() -> JSONResponse:
    return rpc_error_response(500, ErrorCodes.INTERNAL_ERROR, "Internal server error")
