"""MCP Component Managers."""

from notes_mcp.managers.base import Registry
from notes_mcp.managers.tool import ToolManager

__all__ = ["Registry", "ToolManager"]
