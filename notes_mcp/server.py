"""
MCP Server Implementation

Provides request handling, middleware orchestration, and tool dispatch
for the notes server.

Key notes:
- Every message is handled independently; no state is kept between calls
- The caller supplies the partition key derived by the access gate, and the
  server resolves it to a notes store through the partition manager
- Tool arguments are validated before any store is opened
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from notes_mcp.auth import PUBLIC_PARTITION
from notes_mcp.base import MCPComponent
from notes_mcp.convert import convert_to_mcp_content
from notes_mcp.exceptions import NotFoundError, ToolError, ValidationError
from notes_mcp.executor import ToolExecutor
from notes_mcp.managers import ToolManager
from notes_mcp.middleware import (
    CallNext,
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewareContext,
)
from notes_mcp.partitions import PartitionManager
from notes_mcp.settings import MCPSettings
from notes_mcp.tool import ToolContext
from notes_mcp.tools import PARTITIONED_TOOLS, SHARED_TOOLS
from notes_mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    SUPPORTED_PROTOCOL_VERSIONS,
    CallToolRequest,
    CallToolResult,
    Implementation,
    InitializeRequest,
    InitializeResult,
    JSONRPCError,
    JSONRPCResponse,
    ListToolsRequest,
    ListToolsResult,
    PingRequest,
    ServerCapabilities,
    TextContent,
)

logger = logging.getLogger("notes.mcp")


class MCPServer(MCPComponent):
    """
    MCP Server exposing the note tools.

    This server provides:
    - Middleware chain for extensible request processing
    - Tool registry and argument validation
    - Partition lookup per request
    """

    def __init__(
        self,
        tools: Iterable[Callable[..., Any]] | None = None,
        *,
        name: str | None = None,
        version: str | None = None,
        title: str | None = None,
        instructions: str | None = None,
        settings: MCPSettings | None = None,
        partitions: PartitionManager | None = None,
        middleware: list[Middleware] | None = None,
    ):
        """
        Initialize MCP server.

        Args:
            tools: Tool functions to serve (defaults to the note tools for the configured tenancy)
            name: Server name
            version: Server version
            title: Server title for display
            instructions: Server instructions
            settings: Settings (uses env if not provided)
            partitions: Partition manager (built from settings if not provided)
            middleware: Additional middleware, applied after the built-in ones
        """
        self.settings = settings or MCPSettings.from_env()
        super().__init__(name or self.settings.server.name)

        # Server identity
        self.version = version or self.settings.server.version
        self.title = title or self.settings.server.title or self.name
        self.instructions = instructions or self.settings.server.instructions or self._default_instructions()

        self.partitions = partitions or PartitionManager(self.settings.storage)
        if tools is None:
            tools = SHARED_TOOLS if self.partitions.shared else PARTITIONED_TOOLS
        self._tool_manager = ToolManager(tools)

        # Middleware chain
        self.middleware: list[Middleware] = []
        self._init_middleware(middleware)

        # Handler registration
        self._handlers = self._register_handlers()

    def _init_middleware(self, custom_middleware: list[Middleware] | None) -> None:
        """Initialize middleware chain."""
        # Always add error handling first (outermost)
        self.middleware.append(
            ErrorHandlingMiddleware(mask_error_details=self.settings.middleware.mask_error_details)
        )

        if self.settings.middleware.enable_logging:
            self.middleware.append(LoggingMiddleware(log_level=self.settings.middleware.log_level))

        if custom_middleware:
            self.middleware.extend(custom_middleware)

    def _register_handlers(self) -> dict[str, Callable]:
        """Register method handlers."""
        return {
            "ping": self._handle_ping,
            "initialize": self._handle_initialize,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
        }

    def _default_instructions(self) -> str:
        return (
            "Notes server with tools to create, read, list, update and delete notes. "
            "Use 'tools/list' to see available tools and 'tools/call' to execute them."
        )

    @property
    def tool_manager(self) -> ToolManager:
        return self._tool_manager

    async def _start(self) -> None:
        self.logger.info(
            f"Serving {len(self._tool_manager)} tools with {self.partitions.settings.tenancy} tenancy"
        )

    async def _stop(self) -> None:
        self.partitions.close()

    async def handle_message(
        self,
        message: Any,
        partition_key: str = PUBLIC_PARTITION,
        session_id: str | None = None,
    ) -> Any:
        """
        Handle an incoming message.

        Args:
            message: Decoded JSON-RPC message
            partition_key: Partition derived from the request credential
            session_id: Transport session, if any

        Returns:
            Response message or None for notifications
        """
        if not isinstance(message, dict):
            return JSONRPCError(id=None, error={"code": INVALID_REQUEST, "message": "Invalid request"})

        method = message.get("method")
        msg_id = message.get("id")

        # Notifications need no response
        if isinstance(method, str) and method.startswith("notifications/"):
            return None

        # Responses to server-initiated requests are not used here
        if "id" in message and "method" not in message:
            return None

        if not isinstance(method, str):
            return JSONRPCError(id=msg_id, error={"code": INVALID_REQUEST, "message": "Invalid request"})

        # A request without an id is a notification and gets no response
        if "id" not in message:
            self.logger.debug(f"Ignoring {method} sent without an id")
            return None

        if msg_id is None or isinstance(msg_id, bool) or not isinstance(msg_id, (str, int)):
            return JSONRPCError(
                id=None,
                error={"code": INVALID_REQUEST, "message": "Invalid request: id must be a string or number"},
            )

        handler = self._handlers.get(method)
        if not handler:
            return JSONRPCError(
                id=msg_id,
                error={"code": METHOD_NOT_FOUND, "message": f"Method not found: {method}"},
            )

        middleware_context = MiddlewareContext(
            message=message,
            method=method,
            request_id=msg_id,
            partition_key=partition_key,
            session_id=session_id,
        )

        async def final_handler(ctx: MiddlewareContext[Any]) -> Any:
            parsed_message = self._parse_message(ctx.message, method)
            return await handler(parsed_message, partition_key=ctx.partition_key or PUBLIC_PARTITION)

        return await self._apply_middleware(middleware_context, final_handler)

    def _parse_message(self, message: dict[str, Any], method: str) -> Any:
        """Parse raw message dict into typed message based on method."""
        message_types = {
            "ping": PingRequest,
            "initialize": InitializeRequest,
            "tools/list": ListToolsRequest,
            "tools/call": CallToolRequest,
        }

        message_type = message_types.get(method)
        if message_type:
            return message_type.model_validate(message)
        return message

    async def _apply_middleware(
        self,
        context: MiddlewareContext[Any],
        final_handler: Callable[[MiddlewareContext[Any]], Any],
    ) -> Any:
        """Apply middleware chain to a request."""
        chain: CallNext[Any, Any] = final_handler

        for middleware in reversed(self.middleware):

            async def make_handler(
                ctx: MiddlewareContext[Any],
                next_handler: CallNext[Any, Any] = chain,
                mw: Middleware = middleware,
            ) -> Any:
                return await mw(ctx, next_handler)

            chain = make_handler

        return await chain(context)

    # Handler methods
    async def _handle_ping(self, message: PingRequest, partition_key: str) -> JSONRPCResponse[Any]:
        return JSONRPCResponse(id=message.id, result={})

    async def _handle_initialize(
        self,
        message: InitializeRequest,
        partition_key: str,
    ) -> JSONRPCResponse[InitializeResult]:
        requested = message.params.protocolVersion
        protocol_version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION

        result = InitializeResult(
            protocolVersion=protocol_version,
            capabilities=ServerCapabilities(tools={"listChanged": False}, logging={}),
            serverInfo=Implementation(name=self.name, version=self.version, title=self.title),
            instructions=self.instructions,
        )
        return JSONRPCResponse(id=message.id, result=result)

    async def _handle_list_tools(
        self,
        message: ListToolsRequest,
        partition_key: str,
    ) -> JSONRPCResponse[ListToolsResult]:
        tools = self._tool_manager.list_tools()
        return JSONRPCResponse(id=message.id, result=ListToolsResult(tools=tools))

    async def _handle_call_tool(
        self,
        message: CallToolRequest,
        partition_key: str,
    ) -> JSONRPCResponse[CallToolResult] | JSONRPCError:
        """Handle tool call request."""
        tool_name = message.params.name
        arguments = message.params.arguments or {}

        try:
            tool = self._tool_manager.get_tool(tool_name)
        except NotFoundError:
            return JSONRPCResponse(
                id=message.id,
                result=CallToolResult(
                    content=[TextContent(text=f"Unknown tool: {tool_name}")],
                    isError=True,
                ),
            )

        try:
            # Malformed input never reaches storage
            kwargs = ToolExecutor.validate_input(tool, arguments)
        except ValidationError as e:
            return JSONRPCError(id=message.id, error={"code": INVALID_PARAMS, "message": str(e)})

        try:
            store = await self.partitions.get_store(partition_key)
            context = ToolContext(store=store, partition_key=partition_key)
            result = await ToolExecutor.invoke(tool, context, kwargs)
        except ValidationError as e:
            return JSONRPCError(id=message.id, error={"code": INVALID_PARAMS, "message": str(e)})
        except (NotFoundError, ToolError) as e:
            return JSONRPCResponse(
                id=message.id,
                result=CallToolResult(content=[TextContent(text=str(e))], isError=True),
            )

        return JSONRPCResponse(
            id=message.id,
            result=CallToolResult(content=convert_to_mcp_content(result), isError=False),
        )
