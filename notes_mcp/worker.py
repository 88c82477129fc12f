"""
Notes MCP Server (HTTP)

Creates a FastAPI application that exposes the MCP server over two transports:
``/mcp`` (streamable HTTP, JSON responses) and ``/sse`` (Server-Sent Events).
Every request passes the access gate before any MCP processing.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from loguru import logger

from notes_mcp.auth import AccessGate
from notes_mcp.exceptions import AuthorizationError
from notes_mcp.server import MCPServer
from notes_mcp.settings import MCPSettings
from notes_mcp.transports import SSETransport, StreamTransport


async def _unauthorized(request: Request, exc: AuthorizationError) -> PlainTextResponse:  # noqa: ARG001
    return PlainTextResponse("Unauthorized", status_code=401)


def create_notes_mcp(
    mcp_settings: MCPSettings | None = None,
    server: MCPServer | None = None,
    **kwargs: Any,
) -> FastAPI:
    """
    Create a FastAPI app exposing the notes MCP server.

    Args:
        mcp_settings: Settings (uses env if not provided)
        server: Prebuilt server; built from ``mcp_settings`` if not provided
        **kwargs: Extra ``MCPServer`` arguments when the server is built here
    """
    if mcp_settings is None:
        mcp_settings = server.settings if server is not None else MCPSettings.from_env()
    mcp_server = server or MCPServer(settings=mcp_settings, **kwargs)

    gate = AccessGate(mcp_settings.auth.secret)
    if not gate.enabled:
        logger.warning("MCP_SECRET is not set; the notes server accepts unauthenticated requests")

    stream = StreamTransport(mcp_server, gate)
    sse = SSETransport(mcp_server, gate, prefix="/sse")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await mcp_server.start()
        logger.info("MCP server started and ready for connections")
        try:
            yield
        finally:
            await sse.shutdown()
            await mcp_server.stop()

    app = FastAPI(
        title=mcp_server.title,
        description=mcp_server.instructions,
        version=mcp_server.version,
        docs_url="/docs" if mcp_settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.add_exception_handler(AuthorizationError, _unauthorized)

    if mcp_settings.http.cors_origins:
        # Preflight requests are answered here, ahead of the access gate
        app.add_middleware(
            CORSMiddleware,
            allow_origins=mcp_settings.http.cors_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "Mcp-Session-Id", "Mcp-Protocol-Version"],
            expose_headers=["Mcp-Session-Id"],
        )

    app.state.mcp_server = mcp_server
    app.state.stream_transport = stream
    app.state.sse_transport = sse

    app.include_router(stream.router, prefix="/mcp")
    app.include_router(sse.router, prefix="/sse")

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run_notes_mcp(
    mcp_settings: MCPSettings | None = None,
    host: str = "127.0.0.1",
    port: int = 8787,
    reload: bool = False,
    debug: bool = False,
) -> None:
    """
    Run the notes MCP server with uvicorn.

    With ``reload`` the app is rebuilt from the environment by the reloader
    process, so ``mcp_settings`` is ignored.
    """
    log_level = "debug" if debug else "info"

    if reload:
        uvicorn.run(
            "notes_mcp.worker:create_notes_mcp",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level=log_level,
            lifespan="on",
        )
        return

    uvicorn.run(
        create_notes_mcp(mcp_settings),
        host=host,
        port=port,
        log_level=log_level,
        lifespan="on",
    )
