import json
from typing import Any

from pydantic import BaseModel

from notes_mcp.models import Note, NoOp
from notes_mcp.types import TextContent


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Note):
        return value.to_payload()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


def serialize_result(value: Any) -> str:
    """
    Render a tool return value as the text payload sent to the client.

    Notes and lists of notes become JSON; plain strings and the no-op
    result become their message text.
    """
    if isinstance(value, NoOp):
        return value.message
    if isinstance(value, str):
        return value
    return json.dumps(_to_jsonable(value))


def convert_to_mcp_content(value: Any) -> list[TextContent]:
    """Convert a tool return value to MCP content items."""
    return [TextContent(text=serialize_result(value))]
