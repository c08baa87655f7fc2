"""Test configuration and common fixtures."""

import pytest
import pytest_asyncio

from lostfound_ai.infrastructure.storage.memory_store import MemoryStore

from tests.fakes import FakeAIProvider, FakeEmbedder


@pytest_asyncio.fixture
async def store() -> MemoryStore:
    """Provide an empty in-memory store."""
    memory_store = MemoryStore()
    await memory_store.initialize()
    yield memory_store
    await memory_store.shutdown()


@pytest.fixture
def fake_ai() -> FakeAIProvider:
    """Provide a fake chat provider answering with an empty object."""
    return FakeAIProvider()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()
