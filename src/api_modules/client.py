"""HTTP client for the DataForSEO v3 API.

One client is created per protocol-server instance and authenticates with
that request's credentials only. Handles request formatting, transient
transport retries and API-level error codes.
"""

from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shared.logging import get_logger
from shared.models import Credentials

logger = get_logger(__name__)

# DataForSEO reports success in the body, not only through HTTP status
STATUS_OK = 20000

DEFAULT_BASE_URL = "https://api.dataforseo.com"


class DataForSEOError(Exception):
    """The API rejected a request or a task."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DataForSEOClient:
    """
    Async client for the DataForSEO API.

    Provides:
    - ``post`` for task endpoints (the body is a list of task objects)
    - ``get`` for reference endpoints such as locations and languages
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.username = credentials.username
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            auth=httpx.BasicAuth(credentials.username, credentials.password.get_secret_value()),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "DataForSEOClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def post(self, path: str, tasks: list[dict[str, Any]]) -> Any:
        """
        Submit tasks to an endpoint and return the first task's result.

        Args:
            path: API path, e.g. ``/v3/serp/google/organic/live/advanced``
            tasks: Task objects sent as the JSON array body

        Raises:
            DataForSEOError: On an HTTP error or a non-OK status code
        """
        payload = await self._request("POST", path, json=tasks)
        return self._first_task_result(payload)

    async def get(self, path: str) -> Any:
        """Fetch a reference endpoint and return the first task's result."""
        payload = await self._request("GET", path)
        return self._first_task_result(payload)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        reraise=True
    )
    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        logger.debug("DataForSEO request", method=method, path=path)
        response = await self._client.request(method, path, **kwargs)

        if response.status_code == 401:
            raise DataForSEOError("DataForSEO rejected the credentials", status_code=401)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DataForSEOError(f"DataForSEO request failed: {e}", response.status_code)

        payload = response.json()
        status_code = payload.get("status_code")
        if status_code != STATUS_OK:
            raise DataForSEOError(
                payload.get("status_message") or "DataForSEO request failed",
                status_code,
            )
        return payload

    @staticmethod
    def _first_task_result(payload: dict[str, Any]) -> Any:
        tasks = payload.get("tasks") or []
        if not tasks:
            return None

        task = tasks[0]
        if task.get("status_code") != STATUS_OK:
            raise DataForSEOError(
                task.get("status_message") or "DataForSEO task failed",
                task.get("status_code"),
            )
        return task.get("result")
