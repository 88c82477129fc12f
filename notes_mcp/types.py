from typing import (
    Any,
    Generic,
    Literal,
    TypeVar,
)

from pydantic import BaseModel, ConfigDict, Field

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ["2024-11-05", "2025-03-26", LATEST_PROTOCOL_VERSION]

RequestId = str | int

# JSON-RPC error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class Result(BaseModel):
    meta: dict[str, Any] | None = Field(alias="_meta", default=None)
    model_config = ConfigDict(extra="allow", populate_by_name=True)


T = TypeVar("T")


class JSONRPCMessage(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")
    jsonrpc: str = Field(default="2.0", frozen=True)


class JSONRPCRequest(JSONRPCMessage):
    """A JSON-RPC request message."""

    id: str | int | None = None
    method: str
    params: dict[str, Any] | None = None


class JSONRPCResponse(BaseModel, Generic[T]):
    """Typed JSON-RPC response with result type parameter."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    result: T


class JSONRPCError(JSONRPCMessage):
    """A JSON-RPC error message."""

    id: str | int | None
    error: dict[str, Any]


class PingRequest(JSONRPCRequest):
    method: str = Field(default="ping", frozen=True)


class Implementation(BaseModel):
    name: str
    version: str
    title: str | None = None


class ServerCapabilities(BaseModel):
    tools: dict[str, Any] | None = None
    logging: dict[str, Any] | None = None
    model_config = ConfigDict(extra="allow")


class InitializeParams(BaseModel):
    protocolVersion: str = LATEST_PROTOCOL_VERSION
    capabilities: dict[str, Any] = Field(default_factory=dict)
    clientInfo: Implementation | None = None
    model_config = ConfigDict(extra="allow")


class InitializeRequest(JSONRPCRequest):
    method: str = Field(default="initialize", frozen=True)
    params: InitializeParams = Field(default_factory=InitializeParams)  # type: ignore[assignment]


class InitializeResult(Result):
    protocolVersion: str
    capabilities: ServerCapabilities
    serverInfo: Implementation
    instructions: str | None = None


class Tool(BaseModel):
    name: str
    description: str | None = None
    inputSchema: dict[str, Any]
    model_config = ConfigDict(extra="allow")


class ListToolsRequest(JSONRPCRequest):
    method: str = Field(default="tools/list", frozen=True)


class ListToolsResult(Result):
    tools: list[Tool]


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class CallToolParams(BaseModel):
    name: str
    arguments: dict[str, Any] | None = None
    model_config = ConfigDict(extra="allow")


class CallToolRequest(JSONRPCRequest):
    method: str = Field(default="tools/call", frozen=True)
    params: CallToolParams  # type: ignore[assignment]


class CallToolResult(Result):
    content: list[TextContent]
    isError: bool = False
