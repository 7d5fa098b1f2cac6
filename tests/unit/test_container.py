"""Tests for store wiring and startup ordering."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import Settings
from src.pf_gateway.container import build_backend, build_storage, build_stores
from src.pf_session.infrastructure.storage import JsonFileStorage, MemoryStorage
from src.pf_sync.infrastructure.memory import InMemoryDocumentBackend
from src.pf_sync.infrastructure.persistence import PostgresDocumentBackend


class TestBuilders:
    def test_memory_backend_by_default(self) -> None:
        assert isinstance(build_backend(Settings(SYNC_BACKEND="memory")), InMemoryDocumentBackend)

    def test_postgres_backend(self) -> None:
        backend = build_backend(Settings(SYNC_BACKEND="postgres"))
        assert isinstance(backend, PostgresDocumentBackend)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            build_backend(Settings(SYNC_BACKEND="firebase"))

    def test_storage_choice(self, tmp_path: Path) -> None:
        assert isinstance(build_storage(Settings(SESSION_STORAGE_PATH=None)), MemoryStorage)
        file_storage = build_storage(Settings(SESSION_STORAGE_PATH=str(tmp_path / "s.json")))
        assert isinstance(file_storage, JsonFileStorage)


class TestStoreContainer:
    async def test_initialize_bootstraps_admin_and_syncs(self) -> None:
        stores = build_stores(Settings(SYNC_BACKEND="memory"))
        await stores.initialize()

        assert stores.identity.is_initialized
        assert stores.listings.is_initialized
        assert stores.identity.find_by_name("admin").is_admin
        assert stores.identity.session_checked
        await stores.close()

    async def test_identity_init_failure_still_checks_session(self) -> None:
        backend = MagicMock()
        backend.load = AsyncMock(side_effect=ConnectionError("down"))
        storage = MemoryStorage()
        stores = build_stores(Settings(), backend=backend, storage=storage)

        await stores.initialize()

        assert stores.identity.is_initialized is False
        assert stores.listings.is_initialized is False
        assert stores.identity.session_checked
        assert stores.identity.is_loading is False
        await stores.close()

    async def test_shared_session_manager(self) -> None:
        stores = build_stores(Settings())
        await stores.initialize()
        await stores.identity.signup("Alice", "secret1")
        assert stores.sessions.read().user_id == stores.identity.active_profile_id
        assert stores.profiles.profile.username == "Alice"
        await stores.close()
