"""
Notes Store

Durable CRUD over the ``notes`` table. Writes read the row back through
``RETURNING``; an update also reads the previous ``updated_at`` in the same
transaction so the new value is always later.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy import (
    Column,
    DateTime,
    Engine,
    Integer,
    MetaData,
    Table,
    Text,
    delete,
    func,
    insert,
    select,
    update,
)

from notes_mcp.exceptions import NoteNotFoundError, ValidationError
from notes_mcp.models import NO_OP, UNSET, Note, NoOp

logger = logging.getLogger("notes.mcp.store")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_notes_table(metadata: MetaData, owner_column: bool) -> Table:
    """Describe the notes table; the ``user`` column exists only for shared tenancy."""
    columns: list[Column] = [
        Column("id", Integer, primary_key=True),
        Column("title", Text, nullable=False),
    ]
    if owner_column:
        columns.append(Column("user", Text, nullable=False))
    columns.extend([
        Column("body", Text, nullable=False),
        Column("created_at", DateTime, server_default=func.current_timestamp()),
        Column("updated_at", DateTime, server_default=func.current_timestamp()),
    ])
    return Table("notes", metadata, *columns, sqlite_autoincrement=True)


class NotesStore:
    """
    CRUD operations for the notes of one partition.

    Operations against a store are serialized by an internal lock, so a
    store may be shared by worker threads.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        owner_column: bool = False,
        clock: Clock | None = None,
        empty_means_unset: bool = True,
    ):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy engine for this partition
            owner_column: Keep a ``user`` column and scope listings by owner
            clock: Source of naive UTC timestamps (defaults to wall clock)
            empty_means_unset: Treat falsy update values as not supplied (set False to store empty strings)
        """
        self.engine = engine
        self.owner_column = owner_column
        self.clock = clock or utcnow
        self.empty_means_unset = empty_means_unset
        self.metadata = MetaData()
        self.table = build_notes_table(self.metadata, owner_column)
        self._lock = threading.Lock()

    def create_schema(self) -> None:
        """Create the notes table if it does not exist yet."""
        with self._lock:
            self.metadata.create_all(self.engine, checkfirst=True)

    def dispose(self) -> None:
        self.engine.dispose()

    def _to_note(self, row: Any) -> Note:
        return Note.model_validate(dict(row._mapping))

    def create_note(self, title: str, body: str, user: str | None = None) -> Note:
        if self.owner_column and user is None:
            raise ValidationError("user is required when notes are shared")

        logger.info(f"[createNote] Creating note with title {title!r}" + (f" for user {user}" if user else ""))
        now = self.clock()
        values: dict[str, Any] = {"title": title, "body": body, "created_at": now, "updated_at": now}
        if self.owner_column:
            values["user"] = user

        stmt = insert(self.table).values(**values).returning(*self.table.c)
        with self._lock, self.engine.begin() as conn:
            note = self._to_note(conn.execute(stmt).one())

        logger.info(f"[createNote] Created note {note.id}: {note.model_dump_json()}")
        return note

    def read_note(self, note_id: int) -> Note:
        logger.info(f"[readNote] Reading note {note_id}")
        stmt = select(self.table).where(self.table.c.id == note_id)
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(stmt).one_or_none()
        if row is None:
            logger.info(f"[readNote] Note {note_id} not found")
            raise NoteNotFoundError(note_id)
        return self._to_note(row)

    def list_notes(self, user: str | None = None) -> list[Note]:
        stmt = select(self.table)
        if self.owner_column:
            # Owner filter is what isolates users from one another here.
            if user is None:
                raise ValidationError("user is required when notes are shared")
            stmt = stmt.where(self.table.c.user == user)
        stmt = stmt.order_by(self.table.c.created_at.desc())

        with self._lock, self.engine.connect() as conn:
            notes = [self._to_note(row) for row in conn.execute(stmt)]

        logger.info(f"[listNotes] Found {len(notes)} notes" + (f" for user {user}" if user else ""))
        return notes

    def _is_supplied(self, value: Any) -> bool:
        if value is UNSET or value is None:
            return False
        if self.empty_means_unset:
            return bool(value)
        return True

    def update_note(self, note_id: int, title: Any = UNSET, body: Any = UNSET) -> Note | NoOp:
        """
        Apply the supplied fields to a note and refresh ``updated_at``.

        Returns ``NO_OP`` without touching storage when neither field is
        supplied.

        Raises:
            NoteNotFoundError: If no note has ``note_id``
        """
        changes: dict[str, Any] = {}
        if self._is_supplied(title):
            changes["title"] = title
        if self._is_supplied(body):
            changes["body"] = body

        if not changes:
            logger.info(f"[updateNote] No fields to update for note {note_id}")
            return NO_OP

        logger.info(f"[updateNote] Updating note {note_id} fields {sorted(changes)}")
        with self._lock, self.engine.begin() as conn:
            previous = conn.execute(
                select(self.table.c.updated_at).where(self.table.c.id == note_id)
            ).scalar_one_or_none()
            if previous is None:
                raise NoteNotFoundError(note_id)
            # updated_at strictly increases even if the clock stalls or steps back
            changes["updated_at"] = max(self.clock(), previous + timedelta(microseconds=1))
            stmt = (
                update(self.table)
                .where(self.table.c.id == note_id)
                .values(**changes)
                .returning(*self.table.c)
            )
            row = conn.execute(stmt).one_or_none()
        if row is None:
            raise NoteNotFoundError(note_id)

        note = self._to_note(row)
        logger.info(f"[updateNote] Updated note {note_id}: {note.model_dump_json()}")
        return note

    def delete_note(self, note_id: int) -> bool:
        """Delete a note. Succeeds whether or not the note existed."""
        logger.info(f"[deleteNote] Deleting note {note_id}")
        with self._lock, self.engine.begin() as conn:
            conn.execute(delete(self.table).where(self.table.c.id == note_id))
        return True
