"""
Base Registry Class

Provides common functionality for keyed registries (tools, partitions).
"""

from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from notes_mcp.exceptions import DuplicateError, NotFoundError

T = TypeVar("T")


class Registry(Generic[T]):
    """
    Base container class for keyed server registries.
    """

    def __init__(self, component: str):
        """
        Initialize registry.

        Args:
            component: Type of entry (e.g., "tool", "partition")
        """
        self.component = component
        self._registries: dict[str, T] = {}

    def add(self, key: str, registry: T, *, replace: bool = False) -> None:
        """
        Add an entry to the registry.

        Raises:
            DuplicateError: If the key exists and ``replace`` is false
        """
        if key in self._registries and not replace:
            raise DuplicateError(f"{self.component.title()} '{key}' already registered")
        self._registries[key] = registry

    def remove(self, key: str) -> T:
        if key not in self._registries:
            raise NotFoundError(f"{self.component.title()} '{key}' not found")
        return self._registries.pop(key)

    def get(self, key: str) -> T:
        if key not in self._registries:
            raise NotFoundError(f"{self.component.title()} '{key}' not found")
        return self._registries[key]

    def keys(self) -> list[str]:
        """List all registry keys."""
        return list(self._registries.keys())

    def __iter__(self) -> Iterator[T]:
        """Iterate over entries."""
        return iter(self._registries.values())

    def clear(self) -> None:
        self._registries.clear()

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Registry) and self._registries == other._registries

    def __len__(self) -> int:
        return len(self._registries)

    def __contains__(self, key: str) -> bool:
        return key in self._registries
