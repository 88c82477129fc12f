"""Validates tool arguments and runs the tool function."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

import pydantic

from notes_mcp.exceptions import ValidationError
from notes_mcp.tool import MaterializedTool, ToolContext

logger = logging.getLogger("notes.mcp.executor")


class ToolExecutor:
    @staticmethod
    def validate_input(tool: MaterializedTool, arguments: Any) -> dict[str, Any]:
        """
        Check arguments against the tool's input model.

        Only the arguments the caller actually supplied are returned, so
        omitted optional parameters keep their function defaults.

        Raises:
            ValidationError: If arguments do not match the declared schema
        """
        try:
            validated = tool.input_model.model_validate(arguments)
        except pydantic.ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid arguments for tool {tool.name}: {problems}") from e
        return validated.model_dump(exclude_unset=True)

    @staticmethod
    async def invoke(tool: MaterializedTool, context: ToolContext, kwargs: dict[str, Any]) -> Any:
        """Call the tool with already validated arguments, off the event loop when it is sync."""
        kwargs = dict(kwargs)
        if tool.definition.tool_context_parameter_name:
            kwargs[tool.definition.tool_context_parameter_name] = context

        logger.debug(f"Running tool {tool.name} in partition {context.partition_key[:12]}")
        if inspect.iscoroutinefunction(tool.tool):
            return await tool.tool(**kwargs)
        return await asyncio.to_thread(tool.tool, **kwargs)

    @staticmethod
    async def run(tool: MaterializedTool, context: ToolContext, arguments: Any) -> Any:
        """Validate ``arguments`` and invoke the tool."""
        kwargs = ToolExecutor.validate_input(tool, arguments)
        return await ToolExecutor.invoke(tool, context, kwargs)
