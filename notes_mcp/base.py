"""
Base Components

Provides base classes and common functionality for server components.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from notes_mcp.exceptions import MCPError


class MCPComponent(ABC):
    """
    Base class for components with a start/stop lifecycle.

    Provides common functionality like:
    - Logging setup
    - Idempotent lifecycle management
    - Error wrapping on startup
    """

    def __init__(self, name: str | None = None):
        """
        Initialize component.

        Args:
            name: Component name (defaults to class name)
        """
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(f"notes.mcp.{self.__class__.__name__.lower()}")
        self._started = False
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        """
        Start the component.

        This method is idempotent - calling it multiple times is safe.
        """
        async with self._lock:
            if self._started:
                self.logger.debug(f"{self.name} already started")
                return

            self.logger.info(f"Starting {self.name}")
            try:
                await self._start()
                self._started = True
                self.logger.info(f"{self.name} started successfully")
            except Exception as e:
                self.logger.error(f"Failed to start {self.name}: {e}")
                raise MCPError(f"Failed to start {self.name}: {e}") from e

    async def stop(self) -> None:
        """
        Stop the component.

        This method is idempotent - calling it multiple times is safe.
        """
        async with self._lock:
            if not self._started:
                self.logger.debug(f"{self.name} not started")
                return

            self.logger.info(f"Stopping {self.name}")
            try:
                await self._stop()
                self.logger.info(f"{self.name} stopped successfully")
            except Exception as e:
                # Best effort, stop errors are logged and not raised
                self.logger.error(f"Failed to stop {self.name}: {e}")
            finally:
                self._started = False

    @abstractmethod
    async def _start(self) -> None:
        """Component-specific start logic."""

    @abstractmethod
    async def _stop(self) -> None:
        """Component-specific stop logic."""

    @property
    def is_started(self) -> bool:
        """Check if component is started."""
        return self._started

    def __repr__(self) -> str:
        return f"<{self.name} started={self._started}>"
