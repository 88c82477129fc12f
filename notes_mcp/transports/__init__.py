"""MCP Transport implementations."""

from notes_mcp.transports.base import TransportSession
from notes_mcp.transports.sse import SSETransport
from notes_mcp.transports.stream import StreamTransport

__all__ = [
    "SSETransport",
    "StreamTransport",
    "TransportSession",
]
