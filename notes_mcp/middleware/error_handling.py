"""Converts exceptions escaping request handlers into JSON-RPC errors."""

from __future__ import annotations

import logging
from typing import Any

from notes_mcp.exceptions import NotFoundError, ValidationError
from notes_mcp.middleware.base import CallNext, Middleware, MiddlewareContext
from notes_mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, JSONRPCError

logger = logging.getLogger("notes.mcp.middleware.error_handling")


class ErrorHandlingMiddleware(Middleware):
    def __init__(self, mask_error_details: bool = False):
        """
        Args:
            mask_error_details: Replace internal error messages with a generic one
        """
        self.mask_error_details = mask_error_details

    def _error_code(self, error: Exception) -> int:
        if isinstance(error, NotFoundError):
            return METHOD_NOT_FOUND
        if isinstance(error, (ValidationError, ValueError)):
            return INVALID_PARAMS
        return INTERNAL_ERROR

    async def __call__(self, context: MiddlewareContext[Any], call_next: CallNext[Any, Any]) -> Any:
        try:
            return await call_next(context)
        except Exception as e:
            logger.exception(f"Error handling {context.method or 'message'}: {e}")
            code = self._error_code(e)
            if self.mask_error_details and code == INTERNAL_ERROR:
                message = "Internal server error"
            else:
                message = str(e) or e.__class__.__name__
            return JSONRPCError(id=context.request_id, error={"code": code, "message": message})
