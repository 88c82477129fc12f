"""Note entity and the sentinel values used by partial updates."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Note(BaseModel):
    """A persisted note row."""

    id: int
    title: str
    body: str
    user: str | None = Field(default=None, description="Owner (shared tenancy only)")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict, dropping the owner column when unused."""
        return self.model_dump(mode="json", exclude_none=True)


class _Unset:
    """Marker for an update argument that was not supplied."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class NoOp:
    """Result of an update that had nothing to apply.

    Distinct from both a returned note and an error: the stored row,
    including ``updated_at``, is left untouched.
    """

    message = "No fields to update"

    def __repr__(self) -> str:
        return "NO_OP"


NO_OP = NoOp()
