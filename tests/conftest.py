from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from notes_mcp.partitions import PartitionManager
from notes_mcp.server import MCPServer
from notes_mcp.settings import MCPSettings, MiddlewareSettings, StorageSettings
from notes_mcp.store import NotesStore


class FakeClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0), step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


def memory_engine():
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store_factory(clock):
    """Build schema-ready in-memory stores sharing the test clock."""
    stores = []

    def factory(**kwargs):
        kwargs.setdefault("clock", clock)
        notes = NotesStore(memory_engine(), **kwargs)
        notes.create_schema()
        stores.append(notes)
        return notes

    yield factory
    for notes in stores:
        notes.dispose()


@pytest.fixture
def store(clock):
    """Partitioned-tenancy store: no owner column."""
    notes = NotesStore(memory_engine(), clock=clock)
    notes.create_schema()
    yield notes
    notes.dispose()


@pytest.fixture
def shared_store(clock):
    """Shared-tenancy store: notes carry their owner."""
    notes = NotesStore(memory_engine(), owner_column=True, clock=clock)
    notes.create_schema()
    yield notes
    notes.dispose()


def make_settings(tenancy: str = "partitioned", secret: str | None = None) -> MCPSettings:
    settings = MCPSettings(
        middleware=MiddlewareSettings(enable_logging=False),
        storage=StorageSettings(tenancy=tenancy, database_url="sqlite://", data_dir=None),
    )
    settings.auth.secret = secret
    return settings


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def server(settings, clock):
    partitions = PartitionManager(settings.storage, clock=clock)
    mcp_server = MCPServer(settings=settings, partitions=partitions)
    yield mcp_server
    partitions.close()


@pytest.fixture
def shared_server(clock):
    settings = make_settings("shared")
    partitions = PartitionManager(settings.storage, clock=clock)
    mcp_server = MCPServer(settings=settings, partitions=partitions)
    yield mcp_server
    partitions.close()
