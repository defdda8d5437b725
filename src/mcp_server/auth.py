"""Credential resolution for the MCP endpoints.

Handles:
- Extracting HTTP Basic credentials with FastAPI's ``HTTPBasic`` scheme
- Falling back to the process-wide default credentials
- A FastAPI dependency that attaches the result to the request

Header credentials always take precedence over the defaults. A missing
header falls back to the defaults, but a malformed Basic header is rejected
outright.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param

from shared.logging import get_logger
from shared.models import Credentials
from mcp_server.errors import InvalidCredentials, MissingCredentials

logger = get_logger(__name__)


class DataForSEOBasic(HTTPBasic):
    """
    HTTP Basic scheme for DataForSEO credentials.

    Returns None when there is nothing to parse: no header, another scheme,
    or a bare ``Basic`` with no payload. Undecodable payloads raise
    ``InvalidCredentials`` instead of FastAPI's ``HTTPException``.
    """

    async def __call__(self, request: Request) -> Optional[HTTPBasicCredentials]:
        scheme, payload = get_authorization_scheme_param(request.headers.get("Authorization"))
        if scheme.lower() == "basic" and not payload.strip():
            return None

        try:
            return await super().__call__(request)
        except HTTPException:
            logger.warning("Undecodable Basic credentials")
            raise InvalidCredentials()


security = DataForSEOBasic(auto_error=False)


def resolve_credentials(
    basic: Optional[HTTPBasicCredentials],
    defaults: Optional[Credentials],
) -> Credentials:
    """
    Resolve the credentials for one request.

    Args:
        basic: Credentials decoded from the Basic header, or None when absent
        defaults: Process-wide default credentials, if configured

    Returns:
        Header credentials if supplied, otherwise the defaults

    Raises:
        InvalidCredentials: Empty username or password (defaults are not consulted)
        MissingCredentials: Neither header nor defaults available
    """
    if basic is not None:
        if not basic.username or not basic.password:
            logger.warning("Invalid credentials")
            raise InvalidCredentials()
        return Credentials(username=basic.username, password=basic.password)

    if defaults is None:
        logger.warning("No DataForSEO credentials provided")
        raise MissingCredentials()

    return defaults


async def require_credentials(
    request: Request,
    basic: Optional[HTTPBasicCredentials] = Depends(security)
) -> Credentials:
    """
    FastAPI dependency resolving credentials for the current request.

    The result is stored on ``request.state`` only; nothing process-wide is
    touched.
    """
    settings = request.app.state.settings
    credentials = resolve_credentials(basic, settings.dataforseo.default_credentials())
    request.state.credentials = credentials
    logger.debug("Credentials resolved", username=credentials.username)
    return credentials
