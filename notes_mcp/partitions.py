"""
Partition Manager

Maps partition keys to their notes store. Stores are opened lazily on first
access. File-backed stores beyond the configured limit are closed least
recently used first and reopened from disk on their next request.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from notes_mcp.exceptions import PartitionLimitError
from notes_mcp.managers.base import Registry
from notes_mcp.settings import StorageSettings
from notes_mcp.store import Clock, NotesStore

logger = logging.getLogger("notes.mcp.partitions")

SHARED_PARTITION = "shared"


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_sqlite_engine(url: str) -> Engine:
    """Create an engine for ``url``; in-memory SQLite shares one connection across threads."""
    if _is_memory_url(url):
        engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    elif url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        return create_engine(url, pool_pre_ping=True)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ARG001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


class PartitionManager(Registry[NotesStore]):
    """
    Explicit map from partition key to notes store.

    With shared tenancy every key resolves to one store holding the notes of
    all users; with partitioned tenancy each key gets its own database.
    """

    def __init__(self, settings: StorageSettings | None = None, *, clock: Clock | None = None):
        super().__init__("partition")
        self.settings = settings or StorageSettings()
        self.clock = clock
        self._open_lock = asyncio.Lock()

    @property
    def shared(self) -> bool:
        return self.settings.tenancy == "shared"

    def resolve(self, partition_key: str) -> str:
        """Map a request's partition key to the key of the store that serves it."""
        return SHARED_PARTITION if self.shared else partition_key

    def _database_url(self, key: str) -> str:
        if self.shared:
            return self.settings.database_url
        if self.settings.data_dir is None:
            return "sqlite://"
        data_dir = Path(self.settings.data_dir)
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{data_dir / f'{key}.sqlite3'}"

    def _open_store(self, key: str) -> NotesStore:
        store = NotesStore(
            create_sqlite_engine(self._database_url(key)),
            owner_column=self.shared,
            clock=self.clock,
            empty_means_unset=self.settings.empty_means_unset,
        )
        store.create_schema()
        return store

    def _touch(self, key: str) -> None:
        # Most recently used partitions sit at the end of the map
        self._registries[key] = self._registries.pop(key)

    def _make_room(self) -> None:
        """
        Close the least recently used store when the partition limit is reached.

        Raises:
            PartitionLimitError: If partitions live in memory, where closing one would lose its notes
        """
        if len(self) < self.settings.max_partitions:
            return
        if self.settings.data_dir is None and not self.shared:
            raise PartitionLimitError(
                f"Partition limit of {self.settings.max_partitions} reached; "
                "set NOTES_DATA_DIR to persist and evict partitions"
            )
        oldest = next(iter(self.keys()))
        logger.info(f"Evicting idle notes partition {oldest[:12]}")
        self.remove(oldest).dispose()

    async def get_store(self, partition_key: str) -> NotesStore:
        """
        Return the store for ``partition_key``, opening it on first use.

        At most ``max_partitions`` stores stay open; file-backed stores are
        evicted least recently used first.
        """
        key = self.resolve(partition_key)
        if key in self:
            self._touch(key)
            return self.get(key)

        async with self._open_lock:
            if key in self:
                self._touch(key)
                return self.get(key)
            self._make_room()
            logger.info(f"Opening notes partition {key[:12]}")
            store = await asyncio.to_thread(self._open_store, key)
            self.add(key, store)
            return store

    def close(self) -> None:
        """Dispose every open store."""
        for store in self:
            store.dispose()
        self.clear()
