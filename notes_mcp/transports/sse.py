"""Server-Sent Events transport for MCP."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from notes_mcp.auth import AccessGate
from notes_mcp.exceptions import NotFoundError, TransportError
from notes_mcp.server import MCPServer
from notes_mcp.transports.base import TransportSession, decode_body, encode_message

logger = logging.getLogger("notes.mcp.transports.sse")

MAX_SESSIONS = 1000  # Maximum number of concurrent sessions


class SSETransport:
    """
    Server-Sent Events transport.

    A client opens the event stream with GET, receives an ``endpoint`` event
    naming the URL to POST messages to, and reads responses from the stream.
    """

    def __init__(
        self,
        server: MCPServer,
        gate: AccessGate,
        *,
        prefix: str = "/sse",
        max_sessions: int = MAX_SESSIONS,
        max_queue: int = 1000,
        ping_interval: int = 15,
    ) -> None:
        self.server = server
        self.gate = gate
        self.prefix = prefix.rstrip("/")
        self.max_sessions = max_sessions
        self.max_queue = max_queue
        self.ping_interval = ping_interval
        self.sessions: dict[str, TransportSession] = {}
        self.sessions_lock = asyncio.Lock()

        self.router = APIRouter(tags=["MCP"])
        self.router.add_api_route("", self.handle_stream, methods=["GET"], operation_id="mcp_sse", summary="MCP Server-Sent Events")
        self.router.add_api_route("/message", self.handle_message, methods=["POST"], operation_id="mcp_sse_message", summary="MCP SSE message")

    async def open_session(self) -> TransportSession:
        """
        Register a new streaming session.

        Raises:
            TransportError: If the session limit is reached
        """
        async with self.sessions_lock:
            if len(self.sessions) >= self.max_sessions:
                raise TransportError("Too many open sessions")
            session = TransportSession(str(uuid.uuid4()), max_queue_size=self.max_queue)
            self.sessions[session.session_id] = session
        logger.info(f"Opened SSE session {session.session_id}")
        return session

    async def close_session(self, session_id: str) -> None:
        async with self.sessions_lock:
            self.sessions.pop(session_id, None)
        logger.info(f"Closed SSE session {session_id}")

    async def get_session(self, session_id: str) -> TransportSession:
        async with self.sessions_lock:
            session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Could not find session {session_id}")
        return session

    def endpoint_url(self, session: TransportSession) -> str:
        return f"{self.prefix}/message?sessionId={session.session_id}"

    async def event_stream(self, session: TransportSession) -> AsyncIterator[dict[str, Any]]:
        """Yield the endpoint event, then every queued message until the session closes."""
        try:
            yield {"event": "endpoint", "data": self.endpoint_url(session)}
            while True:
                message = await session.queue.get()
                if message is None:  # Sentinel value
                    break
                yield {"event": "message", "data": json.dumps(message)}
        finally:
            await self.close_session(session.session_id)

    async def post_message(self, session_id: str, body: Any, partition_key: str) -> None:
        """
        Handle a message posted for a session and queue the reply on its stream.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = await self.get_session(session_id)
        session.touch()
        reply = await self.server.handle_message(body, partition_key=partition_key, session_id=session_id)
        if reply is not None:
            await session.send(encode_message(reply))

    async def shutdown(self) -> None:
        """Close every open stream."""
        async with self.sessions_lock:
            sessions = list(self.sessions.values())
        for session in sessions:
            with contextlib.suppress(asyncio.QueueFull):
                session.queue.put_nowait(None)

    async def handle_stream(self, request: Request) -> Response:
        await self.gate(request)
        try:
            session = await self.open_session()
        except TransportError as e:
            return JSONResponse(status_code=503, content={"status": "error", "message": str(e)})
        return EventSourceResponse(self.event_stream(session), ping=self.ping_interval)

    async def handle_message(self, request: Request, session_id: str = Query(alias="sessionId")) -> Response:
        partition_key = await self.gate(request)
        try:
            body = decode_body(await request.body())
        except TransportError as e:
            return JSONResponse(status_code=400, content={"status": "error", "message": str(e)})

        try:
            await self.post_message(session_id, body, partition_key)
        except NotFoundError as e:
            return JSONResponse(status_code=404, content={"status": "error", "message": str(e)})
        return Response("Accepted", status_code=202)
