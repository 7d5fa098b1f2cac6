"""Shared test fixtures."""

import pytest

from src.pf_identity.application.store import IdentityStore
from src.pf_listing.application.store import ListingStore
from src.pf_session.application.service import SessionManager
from src.pf_session.infrastructure.storage import MemoryStorage
from src.pf_sync.domain.models import SyncConfig
from src.pf_sync.infrastructure.memory import InMemoryDocumentBackend
from tests.factories import LISTINGS_DOC, USERS_DOC


@pytest.fixture
def backend() -> InMemoryDocumentBackend:
    return InMemoryDocumentBackend()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def sessions(storage: MemoryStorage) -> SessionManager:
    return SessionManager(storage)


@pytest.fixture
async def identity(backend: InMemoryDocumentBackend, sessions: SessionManager) -> IdentityStore:
    """Initialized identity store without the admin bootstrap callback."""
    store = IdentityStore(
        backend, sessions, config=SyncConfig(doc_id=USERS_DOC, init_timeout_ms=1000)
    )
    await store.initialize()
    store.check_session()
    yield store
    await store.close()


@pytest.fixture
async def listings(backend: InMemoryDocumentBackend, identity: IdentityStore) -> ListingStore:
    store = ListingStore(
        backend, identity, config=SyncConfig(doc_id=LISTINGS_DOC, init_timeout_ms=1000)
    )
    await store.initialize()
    yield store
    await store.close()
