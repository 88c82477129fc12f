# Note-taking tools for MCP

from .notes import (
    PARTITIONED_TOOLS,
    SHARED_TOOLS,
    create_note,
    create_user_note,
    delete_note,
    list_notes,
    list_user_notes,
    read_note,
    update_note,
)

__all__ = [
    "PARTITIONED_TOOLS",
    "SHARED_TOOLS",
    "create_note",
    "create_user_note",
    "delete_note",
    "list_notes",
    "list_user_notes",
    "read_note",
    "update_note",
]
