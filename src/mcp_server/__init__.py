"""MCP Server - stateless, request-scoped protocol server.

Every HTTP request gets its own credentials, protocol-server instance and
transport; nothing is shared between requests except read-only settings.
"""

from mcp_server.version import SERVER_NAME, __version__
from mcp_server.registry import ToolRegistry
from mcp_server.router import ToolRouter
from mcp_server.protocol import MCPServer
from mcp_server.transport import StreamableHTTPTransport
from mcp_server.lifecycle import RequestLifecycle

__all__ = [
    "SERVER_NAME",
    "__version__",
    "ToolRegistry",
    "ToolRouter",
    "MCPServer",
    "StreamableHTTPTransport",
    "RequestLifecycle",
]
