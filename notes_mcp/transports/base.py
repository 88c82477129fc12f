"""Transport building blocks shared by the HTTP transports."""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

from pydantic import BaseModel

from notes_mcp.exceptions import TransportError

MAX_BODY_BYTES = 1024 * 1024


class TransportSession:
    """
    Framework-agnostic per-connection streaming session for transports.
    Holds a bounded queue for outbound events, a last-active timestamp,
    and exposes touch()/close()/send() helpers.
    """

    def __init__(self, session_id: str, max_queue_size: int = 1000) -> None:
        self.session_id = session_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self.last_active: float = time.time()

    def touch(self) -> None:
        self.last_active = time.time()

    async def close(self) -> None:
        await self.queue.put(None)

    async def send(self, message: Any) -> None:
        await self.queue.put(message)


def decode_body(body: bytes) -> Any:
    """
    Decode a JSON-RPC request body.

    Raises:
        TransportError: If the body is too large or not valid JSON
    """
    if len(body) > MAX_BODY_BYTES:
        raise TransportError("Request body too large (max 1MB)")
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"Invalid JSON: {e!s}") from e


def encode_message(message: Any) -> Any:
    """Dump a response model to plain JSON data."""
    if isinstance(message, BaseModel):
        data = message.model_dump(mode="json", by_alias=True, exclude_none=True)
        # Error responses keep a null id
        if "error" in data:
            data.setdefault("id", None)
        return data
    return message
