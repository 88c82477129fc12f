"""MCP Middleware System"""

from notes_mcp.middleware.base import (
    CallNext,
    Middleware,
    MiddlewareContext,
)
from notes_mcp.middleware.error_handling import ErrorHandlingMiddleware
from notes_mcp.middleware.logging import LoggingMiddleware

__all__ = [
    "Middleware",
    "MiddlewareContext",
    "CallNext",
    "LoggingMiddleware",
    "ErrorHandlingMiddleware",
]
