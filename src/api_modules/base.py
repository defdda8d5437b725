"""Base class for DataForSEO API modules.

All modules must:
- Declare their tools with a JSON schema and an upstream endpoint
- Call the API only through the client they were built with
- Never hold state shared with another request
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from shared.logging import get_logger
from shared.models import HttpMethod, ToolDefinition
from shared.schema import apply_defaults, create_tool_schema
from api_modules.client import DataForSEOClient
from api_modules.fields import FieldConfiguration

logger = get_logger(__name__)

# Parameters shared by most live endpoints
LOCATION_NAME = {
    "name": "location_name",
    "type": "string",
    "description": "Full location name, e.g. 'United States'",
    "default": "United States",
}
LANGUAGE_CODE = {
    "name": "language_code",
    "type": "string",
    "description": "Language code, e.g. 'en'",
    "default": "en",
}
LIMIT = {
    "name": "limit",
    "type": "integer",
    "description": "Maximum number of returned items",
    "default": 10,
    "minimum": 1,
    "maximum": 1000,
}


class BaseModule(ABC):
    """
    Base class for an API module.

    Each module:
    - Handles one group of upstream endpoints
    - Builds task payloads from validated tool arguments
    - Is created per protocol-server instance
    """

    key: str = ""
    description: str = ""

    def __init__(
        self,
        client: DataForSEOClient,
        field_config: Optional[FieldConfiguration] = None
    ) -> None:
        self.client = client
        self.field_config = field_config or FieldConfiguration()
        self._tools: dict[str, ToolDefinition] = {}
        self._define_tools()

    @abstractmethod
    def _define_tools(self) -> None:
        """Declare this module's tools via ``_tool``."""

    @property
    def tools(self) -> list[ToolDefinition]:
        """Return all tool definitions for this module."""
        return list(self._tools.values())

    def _tool(
        self,
        name: str,
        description: str,
        endpoint: str,
        parameters: list[dict[str, Any]],
        method: HttpMethod = HttpMethod.POST,
    ) -> None:
        self._tools[name] = ToolDefinition(
            name=name,
            module=self.key,
            description=description,
            input_schema=create_tool_schema(parameters),
            method=method,
            endpoint=endpoint,
        )

    def build_task(self, tool: ToolDefinition, arguments: dict[str, Any]) -> dict[str, Any]:
        """Build the upstream task object. Override to rename or reshape fields."""
        return apply_defaults(arguments, tool.input_schema)

    def build_path(self, tool: ToolDefinition, arguments: dict[str, Any]) -> str:
        """Build the upstream path; GET endpoints may embed arguments."""
        return tool.endpoint

    def postprocess(self, tool: ToolDefinition, arguments: dict[str, Any], result: Any) -> Any:
        """Reshape the upstream result before field filtering."""
        return result

    async def execute(self, name: str, arguments: dict[str, Any]) -> Any:
        """
        Execute a tool against the upstream API.

        Args:
            name: Tool name
            arguments: Arguments already validated against the tool schema

        Returns:
            The (field-filtered) upstream result
        """
        tool = self._tools.get(name)
        if tool is None:
            raise KeyError(f"Tool '{name}' not found in module '{self.key}'")

        path = self.build_path(tool, arguments)
        if tool.method == HttpMethod.GET:
            result = await self.client.get(path)
        else:
            result = await self.client.post(path, [self.build_task(tool, arguments)])

        result = self.postprocess(tool, arguments, result)
        return self.field_config.filter(name, result)
