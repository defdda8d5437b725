"""Tool registry for one protocol-server instance.

Every instance gets its own registry; nothing here is process-wide.
"""

from typing import Any, Optional

from shared.logging import get_logger
from shared.models import ToolDefinition
from shared.schema import validate_schema

logger = get_logger(__name__)


class ToolRegistry:
    """
    Registry of the tools exposed by one server instance.

    Responsibilities:
    - Register tools from API modules
    - Lookup tools by name
    - Validate tool arguments against their schema
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._modules: set[str] = set()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def register(self, tool: ToolDefinition) -> None:
        """
        Register a tool in the registry.

        Raises:
            ValueError: If the tool name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        self._modules.add(tool.module)

    def register_many(self, tools: list[ToolDefinition]) -> None:
        """Register multiple tools at once."""
        for tool in tools:
            self.register(tool)

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        return self._tools.get(tool_name)

    def list_tools(
        self,
        module: Optional[str] = None,
        include_deprecated: bool = False
    ) -> list[ToolDefinition]:
        """
        List registered tools, optionally filtered by module.

        Args:
            module: Filter by module key
            include_deprecated: Include deprecated tools
        """
        tools = list(self._tools.values())

        if module:
            tools = [t for t in tools if t.module == module]

        if not include_deprecated:
            tools = [t for t in tools if not t.deprecated]

        return tools

    def list_modules(self) -> list[str]:
        """List all registered module keys."""
        return sorted(self._modules)

    def validate_input(
        self,
        tool_name: str,
        arguments: dict[str, Any]
    ) -> tuple[bool, list[str]]:
        """
        Validate arguments against the tool's input schema.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        tool = self.get(tool_name)
        if not tool:
            return False, [f"Tool '{tool_name}' not found"]

        if not tool.input_schema:
            return True, []

        return validate_schema(arguments, tool.input_schema)

    def get_tools_for_mcp(self) -> list[dict[str, Any]]:
        """Return tool definitions in ``tools/list`` format."""
        return [tool.to_mcp() for tool in self.list_tools()]
