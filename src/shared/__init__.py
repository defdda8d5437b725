"""Shared utilities and base classes for the DataForSEO MCP server."""

from shared.models import (
    Credentials,
    ToolDefinition,
    ToolResult,
    ToolResultStatus,
    AuditEntry,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "Credentials",
    "ToolDefinition",
    "ToolResult",
    "ToolResultStatus",
    "AuditEntry",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
