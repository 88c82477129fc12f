from typing import Annotated

from notes_mcp.models import UNSET, Note, NoOp
from notes_mcp.tool import ToolContext, tool

# Partitioned tenancy: the partition is the owner, so no user arguments.


@tool(name="createNote", desc="Create a new note.")
def create_note(
    context: ToolContext,
    title: Annotated[str, "The note title."],
    body: Annotated[str, "The note body."],
) -> Note:
    return context.store.create_note(title, body)


@tool(name="readNote", desc="Read a note by id.")
def read_note(context: ToolContext, id: Annotated[int, "The note id."]) -> Note:  # noqa: A002
    return context.store.read_note(id)


@tool(name="listNotes", desc="List all notes, newest first.")
def list_notes(context: ToolContext) -> list[Note]:
    return context.store.list_notes()


@tool(name="updateNote", desc="Update the title and/or body of a note.")
def update_note(
    context: ToolContext,
    id: Annotated[int, "The note id."],  # noqa: A002
    title: Annotated[str, "The new title."] = UNSET,
    body: Annotated[str, "The new body."] = UNSET,
) -> Note | NoOp:
    return context.store.update_note(id, title=title, body=body)


@tool(name="deleteNote", desc="Delete a note by id.")
def delete_note(context: ToolContext, id: Annotated[int, "The note id."]) -> str:  # noqa: A002
    context.store.delete_note(id)
    return "Note deleted"


# Shared tenancy: one store for everyone, notes carry their owner.


@tool(name="createNote", desc="Create a new note for a user.")
def create_user_note(
    context: ToolContext,
    title: Annotated[str, "The note title."],
    user: Annotated[str, "The user who owns the note."],
    body: Annotated[str, "The note body."],
) -> Note:
    return context.store.create_note(title, body, user=user)


@tool(name="listNotes", desc="List a user's notes, newest first.")
def list_user_notes(context: ToolContext, user: Annotated[str, "The user whose notes to list."]) -> list[Note]:
    return context.store.list_notes(user=user)


PARTITIONED_TOOLS = [create_note, read_note, list_notes, update_note, delete_note]
SHARED_TOOLS = [create_user_note, read_note, list_user_notes, update_note, delete_note]
