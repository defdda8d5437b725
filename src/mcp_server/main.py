"""MCP Server - FastAPI application.

Routes:
- ``POST /mcp`` and ``POST /http``: one stateless MCP exchange each
- ``GET``/``DELETE`` on the same paths: always 405
- ``GET /``: diagnostic console, ``GET /health``: health check
"""

import sys
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models import Credentials
from api_modules import FieldConfiguration, enabled_module_keys
from mcp_server.audit import AuditLogger
from mcp_server.auth import require_credentials
from mcp_server.console import CONSOLE_HTML
from mcp_server.errors import AuthFailure, ErrorCodes, rpc_error_response
from mcp_server.factory import ServerFactory, build_server_factory
from mcp_server.lifecycle import RequestLifecycle
from mcp_server.version import SERVER_NAME, __version__

logger = get_logger(__name__)

MCP_PATHS = ("/mcp", "/http")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    modules: list[str]


router = APIRouter()


async def request_log_context(request: Request):
    """Bind request id, method and path for every log line of the request, auth included."""
    clear_context()
    bind_context(request_id=str(uuid.uuid4()), method=request.method, path=request.url.path)
    try:
        yield
    finally:
        clear_context()


async def handle_mcp_request(
    request: Request,
    credentials: Credentials = Depends(require_credentials)
) -> Response:
    """
    Serve one MCP exchange.

    A new server instance and transport are created for every request so
    concurrent clients can never collide on JSON-RPC ids or share state.
    """
    body = await request.body()
    lifecycle = RequestLifecycle(request, request.app.state.server_factory)
    return await lifecycle.run(credentials, body)


async def method_not_allowed(request: Request) -> JSONResponse:
    """GET and DELETE are never served; there are no sessions to stream or end."""
    logger.info("Method not allowed")
    return rpc_error_response(
        405,
        ErrorCodes.SERVER_ERROR,
        "Method not allowed.",
        headers={"Allow": "POST"},
    )


for _path in MCP_PATHS:
    router.add_api_route(
        _path,
        handle_mcp_request,
        methods=["POST"],
        tags=["MCP"],
        dependencies=[Depends(request_log_context)],
    )
    router.add_api_route(
        _path,
        method_not_allowed,
        methods=["GET", "DELETE"],
        tags=["MCP"],
        dependencies=[Depends(request_log_context)],
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def console() -> str:
    """Quick manual tester for the MCP endpoint."""
    return CONSOLE_HTML


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    settings: Settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        version=__version__,
        modules=enabled_module_keys(settings.dataforseo.enabled_module_keys),
    )


async def auth_failure_handler(request: Request, exc: AuthFailure) -> JSONResponse:
    return rpc_error_response(401, ErrorCodes.AUTHENTICATION_REQUIRED, exc.message)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, json_output=settings.environment == "production")
    logger.info(
        "MCP Stateless Streamable HTTP Server starting",
        server=SERVER_NAME,
        version=__version__,
        port=settings.server.port,
        default_credentials=settings.dataforseo.default_credentials() is not None,
    )
    yield
    logger.info("Shutting down MCP server")


def create_app(
    settings: Optional[Settings] = None,
    server_factory: Optional[ServerFactory] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings; defaults to the cached settings
        server_factory: Builds a protocol server from credentials; defaults
            to the DataForSEO server factory
    """
    settings = settings or get_settings()

    if server_factory is None:
        server_factory = build_server_factory(
            settings,
            field_config=FieldConfiguration.from_file(settings.dataforseo.field_config_path),
            audit_logger=AuditLogger(
                log_path=settings.server.audit_log_path,
                enabled=settings.server.enable_audit,
            ),
        )

    app = FastAPI(
        title="DataForSEO MCP Server",
        description="Stateless Streamable HTTP MCP server for DataForSEO APIs",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.server_factory = server_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthFailure, auth_failure_handler)
    app.include_router(router)

    return app


app = create_app()


def main() -> None:
    """Run the MCP server."""
    import uvicorn

    try:
        settings = get_settings()
        setup_logging(settings.log_level, json_output=settings.environment == "production")
        uvicorn.run(
            create_app(settings),
            host=settings.server.host,
            port=settings.server.port,
            log_config=None,
        )
    except Exception:
        logger.critical("Fatal error in main()", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
