"""Audit logging for tool executions.

Captures: username, tool, arguments (redacted), timestamp, result status.
Entries are appended as JSON lines as soon as they are created; the logger
keeps no per-request state, so one instance can serve every request.
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import aiofiles

from shared.logging import SENSITIVE_KEYS, get_logger
from shared.models import AuditEntry, ToolDefinition, ToolResult

logger = get_logger(__name__)


class AuditLogger:
    """
    Audit logger for MCP tool executions.

    All tool executions are logged with:
    - Username of the upstream account
    - Tool name and module
    - Arguments (with sensitive data redacted)
    - Timestamp and result status
    """

    def __init__(
        self,
        log_path: str = "logs/audit.log",
        enabled: bool = True,
    ) -> None:
        self.log_path = Path(log_path)
        self.enabled = enabled

        if self.enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _redact_sensitive(self, params: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive parameters from audit logs."""
        redacted = {}
        for key, value in params.items():
            if key.lower() in SENSITIVE_KEYS:
                redacted[key] = "[REDACTED]"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive(value)
            else:
                redacted[key] = value
        return redacted

    def create_entry(
        self,
        username: str,
        tool_name: str,
        arguments: dict[str, Any],
        result: ToolResult,
        tool: Optional[ToolDefinition] = None,
        request_id: Optional[str] = None,
    ) -> AuditEntry:
        """Create an audit entry from tool execution data."""
        return AuditEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.utcnow(),
            username=username,
            tool_name=tool_name,
            module=tool.module if tool else None,
            parameters=self._redact_sensitive(arguments),
            status=result.status,
            error=result.error,
            execution_time_ms=result.execution_time_ms,
            request_id=request_id,
        )

    async def log(self, entry: AuditEntry) -> None:
        """Log a tool execution to the structured logger and the audit file."""
        if not self.enabled:
            return

        logger.info(
            "Tool executed",
            audit_id=entry.id,
            user=entry.username,
            tool=entry.tool_name,
            module=entry.module,
            status=entry.status.value,
            execution_time_ms=entry.execution_time_ms
        )

        try:
            async with aiofiles.open(self.log_path, "a") as f:
                await f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Failed to write audit log", error=str(e))
