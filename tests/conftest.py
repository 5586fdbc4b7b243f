"""
Shared pytest fixtures for the sync queue tests.

Part of AMA-720: Offline-first sync queue
"""
import pytest
import pytest_asyncio

from infrastructure.storage import RecordQueueStore
from tests.fakes import FakeNetworkObserver, FakeRemoteApiClient, InMemoryRecordStorage


@pytest.fixture
def storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage()


@pytest_asyncio.fixture
async def store(storage):
    """Initialized queue store over in-memory storage; closed after the test."""
    queue_store = RecordQueueStore(storage)
    await queue_store.init()
    yield queue_store
    await queue_store.close()


@pytest.fixture
def client() -> FakeRemoteApiClient:
    return FakeRemoteApiClient()


@pytest.fixture
def observer() -> FakeNetworkObserver:
    return FakeNetworkObserver(online=True)
