"""Server instance factory.

Builds one fully independent ``MCPServer`` per request: a new upstream
client authenticated with that request's credentials, new module objects,
a new registry and router. Only read-only configuration is shared.
"""

from typing import Callable, Optional

import httpx

from shared.config import Settings
from shared.logging import get_logger
from shared.models import Credentials
from api_modules import DataForSEOClient, FieldConfiguration, load_modules
from mcp_server.version import SERVER_NAME, __version__
from mcp_server.audit import AuditLogger
from mcp_server.protocol import MCPServer
from mcp_server.registry import ToolRegistry
from mcp_server.router import ToolRouter

logger = get_logger(__name__)

ServerFactory = Callable[[Credentials], MCPServer]


def create_server(
    credentials: Credentials,
    settings: Settings,
    field_config: Optional[FieldConfiguration] = None,
    audit_logger: Optional[AuditLogger] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> MCPServer:
    """
    Create a protocol server bound to ``credentials``.

    Raises whatever module or registry construction raises; the caller turns
    that into a failed request.
    """
    client = DataForSEOClient(
        credentials,
        base_url=settings.dataforseo.base_url,
        timeout=settings.dataforseo.timeout_seconds,
        transport=http_transport,
    )
    router = ToolRouter(
        registry=ToolRegistry(),
        username=credentials.username,
        audit_logger=audit_logger,
    )
    for module in load_modules(
        client,
        enabled=settings.dataforseo.enabled_module_keys,
        field_config=field_config,
    ):
        router.register_module(module)

    logger.debug("Server instance created", modules=router.modules, tool_count=len(router.registry))
    return MCPServer(SERVER_NAME, __version__, router, owned=[client])


def build_server_factory(
    settings: Settings,
    field_config: Optional[FieldConfiguration] = None,
    audit_logger: Optional[AuditLogger] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServerFactory:
    """Bind the read-only, process-wide configuration into a factory."""

    def factory(credentials: Credentials) -> MCPServer:
        return create_server(credentials, settings, field_config, audit_logger, http_transport)

    return factory
