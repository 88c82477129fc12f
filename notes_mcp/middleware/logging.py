"""Request logging middleware."""

from __future__ import annotations

import logging
import time
from typing import Any

from notes_mcp.middleware.base import CallNext, Middleware, MiddlewareContext

logger = logging.getLogger("notes.mcp.middleware.logging")


class LoggingMiddleware(Middleware):
    def __init__(self, log_level: str = "INFO"):
        self.level = logging.getLevelName(log_level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO

    async def __call__(self, context: MiddlewareContext[Any], call_next: CallNext[Any, Any]) -> Any:
        start = time.perf_counter()
        try:
            return await call_next(context)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.log(
                self.level,
                f"{context.method} id={context.request_id} completed in {elapsed_ms:.1f}ms",
            )
