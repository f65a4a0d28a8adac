"""
Shared pytest fixtures for the relay test suite.

This module provides fixtures that are automatically available to all test files:
- An in-memory key-value store and a RoomStore on top of it
- A recording fake translator and a translation pipeline using it
- A recording fake transport and a fully wired GatewayCoordinator
- A FastAPI TestClient running the app with in-process backends

No fixture touches the network: Redis and translation backends are
replaced by the in-process doubles from ``tests.fakes``.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from relay_server.api.server import create_app
from relay_server.config import ServerConfig
from relay_server.core.gateway import GatewayCoordinator
from relay_server.core.room_store import RoomStore
from relay_server.core.sessions import SessionRegistry
from relay_server.storage.memory import InMemoryStore
from relay_server.translation.service import TranslationPipeline
from tests.fakes import FakeTranslator, FakeTransport

# ============================================================================
# STORAGE FIXTURES
# ============================================================================


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Fresh, empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def room_store(memory_store: InMemoryStore) -> RoomStore:
    """RoomStore over the in-memory store with the default capacity."""
    return RoomStore(memory_store, capacity=200)


# ============================================================================
# TRANSLATION FIXTURES
# ============================================================================


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def pipeline(fake_translator: FakeTranslator) -> TranslationPipeline:
    return TranslationPipeline(fake_translator)


# ============================================================================
# GATEWAY FIXTURES
# ============================================================================


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sessions() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def gateway(
    sessions: SessionRegistry,
    room_store: RoomStore,
    pipeline: TranslationPipeline,
    fake_transport: FakeTransport,
) -> GatewayCoordinator:
    """Gateway wired to in-process collaborators (replay limit 50)."""
    return GatewayCoordinator(
        sessions=sessions,
        rooms=room_store,
        pipeline=pipeline,
        transport=fake_transport,
        replay_limit=50,
    )


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def test_config() -> ServerConfig:
    """Default configuration with the in-memory storage backend."""
    cfg = ServerConfig()
    cfg.storage.backend = "memory"
    return cfg


@pytest.fixture
def test_client(
    test_config: ServerConfig, fake_translator: FakeTranslator
) -> Generator[TestClient, None, None]:
    """
    TestClient for the relay app.

    The client is used as a context manager so the application lifespan
    (component wiring and shutdown) runs around each test.
    """
    app = create_app(
        test_config,
        store=InMemoryStore(),
        pipeline=TranslationPipeline(fake_translator),
    )
    with TestClient(app) as client:
        yield client
