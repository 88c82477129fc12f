"""Streamable HTTP transport for MCP, in JSON response mode."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from notes_mcp.auth import AccessGate
from notes_mcp.exceptions import TransportError
from notes_mcp.server import MCPServer
from notes_mcp.transports.base import decode_body, encode_message
from notes_mcp.types import INVALID_REQUEST, JSONRPCError

logger = logging.getLogger("notes.mcp.transports.stream")


class StreamTransport:
    """
    Request/response transport: each POST carries one JSON-RPC message (or a
    batch) and the reply is returned in the HTTP response body.
    """

    def __init__(self, server: MCPServer, gate: AccessGate):
        self.server = server
        self.gate = gate
        self.router = APIRouter(tags=["MCP"])
        self.router.add_api_route(
            "",
            self.handle_post,
            methods=["POST"],
            operation_id="mcp_post",
            summary="MCP POST",
        )
        self.router.add_api_route("", self.handle_get, methods=["GET"], operation_id="mcp_get", summary="MCP GET")

    async def dispatch(self, body: Any, partition_key: str) -> Any:
        """Handle a decoded body; returns JSON data or None when nothing needs answering."""
        if isinstance(body, list):
            if not body:
                return encode_message(JSONRPCError(id=None, error={"code": INVALID_REQUEST, "message": "Empty batch"}))
            replies = [await self.server.handle_message(item, partition_key=partition_key) for item in body]
            replies = [encode_message(r) for r in replies if r is not None]
            return replies or None

        reply = await self.server.handle_message(body, partition_key=partition_key)
        return encode_message(reply) if reply is not None else None

    async def handle_post(self, request: Request) -> Response:
        partition_key = await self.gate(request)

        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return JSONResponse(
                status_code=415,
                content={"status": "error", "message": "Content-Type must be application/json"},
            )

        try:
            body = decode_body(await request.body())
        except TransportError as e:
            logger.debug(f"Rejected MCP POST body: {e}")
            return JSONResponse(status_code=400, content={"status": "error", "message": str(e)})

        data = await self.dispatch(body, partition_key)
        if data is None:
            return Response(status_code=202)
        return JSONResponse(content=data)

    async def handle_get(self, request: Request) -> Response:
        await self.gate(request)
        # JSON response mode never opens a server-initiated stream
        return Response(status_code=405, headers={"Allow": "POST"})
