"""
MCP Exception Hierarchy

Provides domain-specific exceptions for the notes server.
"""


class MCPError(Exception):
    """Base error for all notes server exceptions."""
    pass


class ValidationError(MCPError):
    """Error in validating tool arguments."""
    pass


class ToolError(MCPError):
    """Error in tool operations."""
    pass


class NotFoundError(MCPError):
    """Requested entity not found."""
    pass


class NoteNotFoundError(NotFoundError):
    """No note exists with the requested id."""

    def __init__(self, note_id: int):
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id


class AuthorizationError(MCPError):
    """Bearer credential did not match the configured secret."""
    pass


class TransportError(MCPError):
    """Error in transport layer operations."""
    pass


class ConfigurationError(MCPError):
    """Configuration error."""
    pass


class DuplicateError(MCPError):
    """Duplicate entity registration."""
    pass


class PartitionLimitError(ToolError):
    """No room to open another in-memory partition."""
    pass
