"""Core data models for the DataForSEO MCP server.

This module defines the shared data structures used across the server:
request credentials, tool definitions and results, audit entries, and the
JSON-RPC 2.0 envelopes carried over HTTP.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, StrictInt, StrictStr

JSONRPC_VERSION = "2.0"

# Ids are echoed verbatim, so no lax coercion (true must not become 1)
RequestId = Union[StrictStr, StrictInt]


class Credentials(BaseModel):
    """
    Upstream API credentials for a single request.

    Never persisted. The password is a ``SecretStr`` so it is masked in
    ``repr()`` and in any log line that renders the model.
    """
    username: str
    password: SecretStr

    model_config = ConfigDict(frozen=True)


class HttpMethod(str, Enum):
    """HTTP method used to reach an upstream endpoint."""
    GET = "GET"
    POST = "POST"


class ToolDefinition(BaseModel):
    """
    Complete definition of an MCP tool.

    Tool names are globally unique and prefixed with their API module
    (e.g., ``serp_organic_live_advanced``).
    """
    name: str = Field(..., description="Unique tool name")
    module: str = Field(..., description="API module key, e.g. SERP")
    description: str = Field(..., description="Clear description for LLM usage")
    version: str = Field(default="1.0.0")

    input_schema: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON Schema for input validation"
    )

    # Upstream endpoint
    method: HttpMethod = Field(default=HttpMethod.POST)
    endpoint: str = Field(..., description="Upstream API path")

    deprecated: bool = False

    def to_mcp(self) -> dict[str, Any]:
        """Return the tool as listed by ``tools/list``."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema or {"type": "object", "properties": {}},
        }


class ToolResultStatus(str, Enum):
    """Status of tool execution."""
    SUCCESS = "success"
    ERROR = "error"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"


class ToolResult(BaseModel):
    """
    Result of a tool execution.

    Contains the output data, status, and any error information.
    """
    tool_name: str
    status: ToolResultStatus
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    execution_time_ms: float = 0

    @property
    def ok(self) -> bool:
        return self.status == ToolResultStatus.SUCCESS


class AuditEntry(BaseModel):
    """Audit log entry for a tool execution."""
    id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    username: str

    tool_name: str
    module: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)

    status: ToolResultStatus
    error: Optional[str] = None
    execution_time_ms: float = 0

    request_id: Optional[str] = None


# JSON-RPC envelopes

class JsonRpcRequest(BaseModel):
    """A JSON-RPC request: carries an id and expects a response."""
    jsonrpc: Literal["2.0"]
    id: RequestId
    method: str
    params: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class JsonRpcNotification(BaseModel):
    """A JSON-RPC notification: no id, no response."""
    jsonrpc: Literal["2.0"]
    method: str
    params: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class JsonRpcErrorObject(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC response, either a result or an error."""
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[RequestId] = None
    result: Optional[Any] = None
    error: Optional[JsonRpcErrorObject] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize keeping ``id`` even when it is null."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


JsonRpcMessage = Union[JsonRpcRequest, JsonRpcNotification, JsonRpcResponse]
