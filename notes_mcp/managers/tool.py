"""
Tool Manager

Manages tools in the MCP server with passive CRUD operations (no per-manager locks).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from notes_mcp.exceptions import NotFoundError
from notes_mcp.managers.base import Registry
from notes_mcp.tool import MaterializedTool, ToolDefinition, materialize_tool
from notes_mcp.types import Tool

logger = logging.getLogger("notes.mcp.managers.tool")


class ToolManager(Registry[MaterializedTool]):
    """
    Manages tools for the MCP server.
    """

    def __init__(self, tools: Iterable[Callable[..., Any]] = ()):
        """
        Initialize tool manager.

        Args:
            tools: ``@tool`` decorated functions to register
        """
        super().__init__("tool")
        for func in tools:
            self.add_tool(func)
        logger.info(f"Tool manager initialized with {len(self)} tools")

    def add_tool(self, func: Callable[..., Any]) -> MaterializedTool:
        """
        Materialize and register a tool.

        Raises:
            DuplicateError: If a tool with the same name is registered
        """
        tool = materialize_tool(func)
        self.add(tool.name, tool)
        logger.debug(f"Added tool: {tool.name}")
        return tool

    def list_tools(self) -> list[Tool]:
        """
        List all available tools.

        Returns:
            List of MCP tool descriptions
        """
        return [
            Tool(
                name=tool.name,
                description=tool.definition.description,
                inputSchema={
                    "type": "object",
                    "properties": self._convert_parameters_to_schema(tool.definition),
                    "required": self._get_required_parameters(tool.definition),
                },
            )
            for tool in self
        ]

    def get_tool(self, name: str) -> MaterializedTool:
        """
        Get a tool by name.

        Raises:
            NotFoundError: If tool not found
        """
        if name not in self:
            raise NotFoundError(f"Tool '{name}' not found")
        return self.get(name)

    def _convert_parameters_to_schema(self, definition: ToolDefinition) -> dict[str, Any]:
        """Convert tool parameters to JSON schema properties."""
        properties: dict[str, Any] = {}
        for param in definition.parameters:
            schema: dict[str, Any] = {"type": param.val_type}
            if param.description:
                schema["description"] = param.description
            properties[param.name] = schema
        return properties

    def _get_required_parameters(self, definition: ToolDefinition) -> list[str]:
        """Get list of required parameter names."""
        return [param.name for param in definition.parameters if param.required]
