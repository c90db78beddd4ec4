"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Iterable, List

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from shortlink.common.logging_config import setup_logging
from shortlink.database.memory import InMemoryMappingStore
from shortlink.errors import StorageFailure
from shortlink.identifier import IdentifierGenerator
from shortlink.service import MappingService
from shortlink.sweeper import ExpirySweeper
from web_app import create_app


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class ScriptedGenerator(IdentifierGenerator):
    """Generator that returns a fixed sequence of identifiers."""

    def __init__(self, identifiers: Iterable[str]):
        super().__init__(length=6)
        self._identifiers: List[str] = list(identifiers)
        self.issued: List[str] = []

    def next(self) -> str:
        identifier = self._identifiers.pop(0)
        self.issued.append(identifier)
        return identifier


class FailingStore(InMemoryMappingStore):
    """In-memory store whose operations fail with StorageFailure."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    async def insert(self, identifier, target, created_by):
        self.calls += 1
        raise StorageFailure("timed out acquiring connection")

    async def lookup_by_identifier(self, identifier):
        self.calls += 1
        raise StorageFailure("timed out acquiring connection")

    async def delete_older_than(self, cutoff):
        self.calls += 1
        raise StorageFailure("timed out acquiring connection")

    async def delete(self, identifier):
        self.calls += 1
        raise StorageFailure("timed out acquiring connection")

    async def health_check(self):
        return False


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(logger) -> InMemoryMappingStore:
    """Create in-memory store using the real clock."""
    return InMemoryMappingStore(logger=logger)


@pytest.fixture
def generator():
    """Create identifier generator."""
    return IdentifierGenerator(length=6)


@pytest.fixture
def service(store, generator, logger) -> MappingService:
    """Create service instance."""
    return MappingService(
        store=store,
        generator=generator,
        cache=None,
        logger=logger,
    )


@pytest.fixture
def sweeper(store, logger) -> ExpirySweeper:
    return ExpirySweeper(store=store, interval_seconds=60, logger=logger)


@pytest.fixture
def config():
    return Config(database_url="memory://", base_url="http://testserver", redirect_status_code=302)


@pytest.fixture
def app(service, sweeper, config):
    """Create test FastAPI app."""
    return create_app(service=service, sweeper=sweeper, config=config)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456?tab=votes#answer-1",
    ]
