"""Shared fixtures: ASGI requests, upstream API mocks and credentials."""

import asyncio
import base64
import json

import httpx
import pytest
from starlette.requests import Request

from shared.models import Credentials


def _basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


def _upstream_ok(result) -> dict:
    return {
        "status_code": 20000,
        "status_message": "Ok.",
        "tasks": [{"status_code": 20000, "status_message": "Ok.", "result": result}],
    }


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the developer's own DataForSEO settings out of the tests."""
    for name in (
        "DATAFORSEO_USERNAME",
        "DATAFORSEO_PASSWORD",
        "ENABLED_MODULES",
        "FIELD_CONFIG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def basic_auth():
    """Build a Basic ``Authorization`` header value."""
    return _basic_auth


@pytest.fixture
def credentials():
    return Credentials(username="alice@example.com", password="s3cret")


@pytest.fixture
def make_request():
    """Build a starlette ``Request`` for a POST to ``/mcp``."""

    async def never_disconnect():
        # The body is already read; block like a live connection
        await asyncio.Event().wait()

    def build(headers=None, receive=None, path="/mcp"):
        headers = {
            "accept": "application/json, text/event-stream",
            "content-type": "application/json",
            **(headers or {}),
        }
        scope = {
            "type": "http",
            "method": "POST",
            "path": path,
            "query_string": b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        }
        return Request(scope, receive or never_disconnect)

    return build


class Upstream:
    """
    A mock DataForSEO API.

    Records every request and answers with ``respond(request)``, a
    successful empty result unless a test replaces it.
    """

    ok = staticmethod(_upstream_ok)

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.respond = lambda request: _upstream_ok([])

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json=self.respond(request))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_body(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream():
    return Upstream()
