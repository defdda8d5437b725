"""Tool router for one protocol-server instance.

Routes tool calls to the API module that declared the tool.
Handles validation, execution, timing and auditing.
"""

import time
from typing import Any, Optional

from shared.logging import get_logger
from shared.models import ToolResult, ToolResultStatus
from api_modules.base import BaseModule
from api_modules.client import DataForSEOError
from mcp_server.audit import AuditLogger
from mcp_server.registry import ToolRegistry

logger = get_logger(__name__)


class ToolRouter:
    """
    Routes tool calls to API modules.

    Responsibilities:
    - Validate tool arguments against schemas
    - Route to the module owning the tool
    - Convert module failures into error results
    - Audit all executions
    """

    def __init__(
        self,
        registry: ToolRegistry,
        username: str,
        audit_logger: Optional[AuditLogger] = None
    ) -> None:
        self.registry = registry
        self.username = username
        self.audit_logger = audit_logger or AuditLogger(enabled=False)
        self._modules: dict[str, BaseModule] = {}

    def register_module(self, module: BaseModule) -> None:
        """Register a module and all of its tools."""
        self.registry.register_many(module.tools)
        self._modules[module.key] = module

    @property
    def modules(self) -> list[str]:
        return list(self._modules)

    async def execute(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        request_id: Optional[str] = None
    ) -> ToolResult:
        """
        Execute a tool call.

        Args:
            tool_name: Tool name as listed by ``tools/list``
            arguments: Tool arguments
            request_id: JSON-RPC id of the call, for audit correlation

        Returns:
            Tool execution result
        """
        start_time = time.monotonic()

        logger.debug("Executing tool", tool=tool_name, request_id=request_id)

        tool = self.registry.get(tool_name)
        if not tool:
            return ToolResult(
                tool_name=tool_name,
                status=ToolResultStatus.NOT_FOUND,
                error=f"Tool {tool_name} not found",
                error_code="TOOL_NOT_FOUND"
            )

        is_valid, errors = self.registry.validate_input(tool_name, arguments)
        if not is_valid:
            result = ToolResult(
                tool_name=tool_name,
                status=ToolResultStatus.VALIDATION_ERROR,
                error=f"Invalid arguments for tool {tool_name}: {'; '.join(errors)}",
                error_code="VALIDATION_ERROR"
            )
            await self._audit(tool_name, arguments, result, request_id)
            return result

        module = self._modules[tool.module]
        try:
            data = await module.execute(tool_name, arguments)
            result = ToolResult(
                tool_name=tool_name,
                status=ToolResultStatus.SUCCESS,
                data=data
            )
        except DataForSEOError as e:
            logger.warning("Upstream API error", tool=tool_name, status_code=e.status_code, error=str(e))
            result = ToolResult(
                tool_name=tool_name,
                status=ToolResultStatus.ERROR,
                error=str(e),
                error_code="API_ERROR"
            )
        except Exception as e:
            logger.error("Tool execution failed", tool=tool_name, error=str(e), exc_info=True)
            result = ToolResult(
                tool_name=tool_name,
                status=ToolResultStatus.ERROR,
                error=str(e),
                error_code="EXECUTION_ERROR"
            )

        result.execution_time_ms = (time.monotonic() - start_time) * 1000
        await self._audit(tool_name, arguments, result, request_id)
        return result

    async def _audit(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        result: ToolResult,
        request_id: Optional[str]
    ) -> None:
        entry = self.audit_logger.create_entry(
            self.username,
            tool_name,
            arguments,
            result,
            tool=self.registry.get(tool_name),
            request_id=request_id,
        )
        await self.audit_logger.log(entry)
