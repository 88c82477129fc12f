"""Middleware primitives for MCP request processing."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class MiddlewareContext(Generic[T]):
    """Request information shared by every middleware in the chain."""

    message: T
    method: str | None = None
    request_id: str | int | None = None
    partition_key: str | None = None
    session_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


CallNext = Callable[[MiddlewareContext[T]], Awaitable[R]]


class Middleware:
    """
    Base middleware.

    Subclasses override ``__call__`` and must await ``call_next`` to continue
    the chain.
    """

    async def __call__(self, context: MiddlewareContext[Any], call_next: CallNext[Any, Any]) -> Any:
        return await call_next(context)
