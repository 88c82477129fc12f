"""
Tool declaration

Tools are plain functions decorated with ``@tool``. Every parameter other
than the ``ToolContext`` must be annotated with ``Annotated[type, "description"]``;
the signature becomes both the published JSON schema and a strict pydantic
model used to validate incoming arguments.
"""

from __future__ import annotations

import inspect
import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, create_model

from notes_mcp.exceptions import ToolError

F = TypeVar("F", bound=Callable[..., Any])


class ToolContext:
    """Per-invocation context handed to tools."""

    def __init__(self, store: Any, partition_key: str):
        self.store = store
        self.partition_key = partition_key

    def __repr__(self) -> str:
        return f"<ToolContext partition={self.partition_key}>"


_VAL_TYPES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


@dataclass
class ToolParameter:
    name: str
    val_type: str
    description: str
    required: bool


@dataclass
class ToolDefinition:
    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)
    tool_context_parameter_name: str | None = None


@dataclass
class MaterializedTool:
    """A tool function together with its definition and input model."""

    tool: Callable[..., Any]
    definition: ToolDefinition
    input_model: type[BaseModel]

    @property
    def name(self) -> str:
        return self.definition.name


def tool(
    func: F | None = None,
    *,
    name: str | None = None,
    desc: str | None = None,
) -> Any:
    """
    Mark a function as a tool.

    Can be used bare (``@tool``) or with arguments
    (``@tool(name="createNote", desc="Create a note")``). The description
    falls back to the function docstring.
    """

    def decorator(fn: F) -> F:
        fn.__tool_name__ = name or fn.__name__  # type: ignore[attr-defined]
        fn.__tool_description__ = desc or inspect.getdoc(fn) or ""  # type: ignore[attr-defined]
        return fn

    if func is not None:
        return decorator(func)
    return decorator


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def materialize_tool(func: Callable[..., Any]) -> MaterializedTool:
    """
    Build the definition and input model for a decorated tool.

    Raises:
        ToolError: If the function is not a tool or a parameter lacks a description
    """
    if not hasattr(func, "__tool_name__"):
        raise ToolError(f"{func.__name__} is not decorated with @tool")

    tool_name: str = func.__tool_name__  # type: ignore[attr-defined]
    hints = get_type_hints(func, include_extras=True)
    signature = inspect.signature(func)

    definition = ToolDefinition(name=tool_name, description=func.__tool_description__)  # type: ignore[attr-defined]
    fields: dict[str, Any] = {}

    for param_name, param in signature.parameters.items():
        annotation = hints.get(param_name, param.annotation)
        if annotation is ToolContext:
            definition.tool_context_parameter_name = param_name
            continue

        if get_origin(annotation) is not Annotated:
            raise ToolError(f"Parameter '{param_name}' of tool '{tool_name}' needs an Annotated description")
        base_type, *metadata = get_args(annotation)
        description = next((m for m in metadata if isinstance(m, str)), "")

        required = param.default is inspect.Parameter.empty
        value_type = _unwrap_optional(base_type)
        definition.parameters.append(
            ToolParameter(
                name=param_name,
                val_type=_VAL_TYPES.get(value_type, "string"),
                description=description,
                required=required,
            )
        )
        default = ... if required else param.default
        # Defaults are never validated, so UNSET can stand in for "absent"
        fields[param_name] = (value_type, Field(default=default, description=description))

    input_model = create_model(
        f"{tool_name}Input",
        __config__=ConfigDict(strict=True, extra="ignore"),
        **fields,
    )
    return MaterializedTool(tool=func, definition=definition, input_model=input_model)
