"""Store wiring for one application instance.

The API serves a single local session, so one StoreContainer lives on
app.state.stores for the process lifetime.
"""

import logging
from dataclasses import dataclass

from config.settings import Settings
from src.pf_identity.application.store import IdentityStore
from src.pf_listing.application.store import ListingStore
from src.pf_profile.application.store import PlayerProfileStore
from src.pf_session.application.service import SessionManager
from src.pf_session.domain.repository import KeyValueStorageProtocol
from src.pf_session.infrastructure.storage import JsonFileStorage, MemoryStorage
from src.pf_sync.domain.repository import DocumentBackendProtocol
from src.pf_sync.infrastructure.memory import InMemoryDocumentBackend
from src.pf_sync.infrastructure.persistence import PostgresDocumentBackend

logger = logging.getLogger(__name__)


@dataclass
class StoreContainer:
    backend: DocumentBackendProtocol
    sessions: SessionManager
    identity: IdentityStore
    listings: ListingStore
    profiles: PlayerProfileStore

    async def initialize(self) -> None:
        """Initialize identity first, then listings.

        A failed identity sync still restores the local session from
        whatever profiles are held locally.
        """
        if not await self.identity.initialize():
            self.identity.check_session()
        await self.listings.initialize()

    async def close(self) -> None:
        self.profiles.close()
        await self.listings.close()
        await self.identity.close()


def build_backend(config: Settings) -> DocumentBackendProtocol:
    if config.SYNC_BACKEND == "postgres":
        return PostgresDocumentBackend()
    if config.SYNC_BACKEND != "memory":
        raise ValueError(f"Unknown SYNC_BACKEND: {config.SYNC_BACKEND!r}")
    return InMemoryDocumentBackend()


def build_storage(config: Settings) -> KeyValueStorageProtocol:
    if config.SESSION_STORAGE_PATH:
        return JsonFileStorage(config.SESSION_STORAGE_PATH)
    return MemoryStorage()


def build_stores(
    config: Settings,
    backend: DocumentBackendProtocol | None = None,
    storage: KeyValueStorageProtocol | None = None,
) -> StoreContainer:
    backend = backend or build_backend(config)
    sessions = SessionManager(storage or build_storage(config))
    identity = IdentityStore(backend, sessions, admin_password=config.ADMIN_BOOTSTRAP_PASSWORD)
    listings = ListingStore(backend, identity)
    profiles = PlayerProfileStore(identity, sessions)
    logger.info("Stores built with %s sync backend", type(backend).__name__)
    return StoreContainer(
        backend=backend,
        sessions=sessions,
        identity=identity,
        listings=listings,
        profiles=profiles,
    )
