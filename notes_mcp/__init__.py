from notes_mcp.auth import AccessGate
from notes_mcp.models import NO_OP, UNSET, Note, NoOp
from notes_mcp.partitions import PartitionManager
from notes_mcp.server import MCPServer
from notes_mcp.settings import MCPSettings
from notes_mcp.store import NotesStore
from notes_mcp.tool import ToolContext, tool
from notes_mcp.worker import create_notes_mcp, run_notes_mcp

__all__ = [
    "NO_OP",
    "UNSET",
    "AccessGate",
    "MCPServer",
    "MCPSettings",
    "Note",
    "NoOp",
    "NotesStore",
    "PartitionManager",
    "ToolContext",
    "create_notes_mcp",
    "run_notes_mcp",
    "tool",
]
