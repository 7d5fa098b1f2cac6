"""Tests for IdentityStore: auth, session restore, profile edits, bootstrap, sync."""

import asyncio

import pytest

from src.pf_common.errors import (
    InvalidCredentialError,
    MissingCredentialError,
    NameTakenError,
    UserNotFoundError,
    ValidationFailedError,
)
from src.pf_identity.application.store import ADMIN_NAME, IdentityStore
from src.pf_identity.domain.models import UserProfile, normalize_name
from src.pf_session.application.service import SessionManager
from src.pf_session.infrastructure.storage import MemoryStorage
from src.pf_sync.domain.models import SyncConfig
from src.pf_sync.infrastructure.memory import InMemoryDocumentBackend
from tests.factories import USERS_DOC, signup


def _store(backend: InMemoryDocumentBackend, storage: MemoryStorage | None = None) -> IdentityStore:
    return IdentityStore(
        backend,
        SessionManager(storage or MemoryStorage()),
        config=SyncConfig(doc_id=USERS_DOC, init_timeout_ms=1000),
    )


class TestNormalizeName:
    def test_trims_and_casefolds(self) -> None:
        assert normalize_name("  Alice ") == "alice"
        assert normalize_name("STRASSE") == normalize_name("straße")


class TestSignup:
    async def test_signup_sets_current_user(self, identity: IdentityStore) -> None:
        assert await identity.signup("Alice", "secret1")
        user = identity.get_current_user()
        assert user is not None
        assert user.name == "Alice"
        assert user.credential == "secret1"

    async def test_signup_persists_session(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        user = await signup(identity, "Alice")
        record = sessions.read()
        assert record is not None
        assert record.user_id == user.id

    async def test_case_insensitive_collision_fails(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        before = list(identity.profiles)

        assert await identity.signup("alice", " secret2") is False
        assert isinstance(identity.failure, NameTakenError)
        assert identity.auth_error == "Username already exists"
        assert identity.profiles == before

    async def test_whitespace_collision_fails(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        assert await identity.signup("  ALICE  ", "secret2") is False

    async def test_ids_are_unique(self, identity: IdentityStore) -> None:
        a = await signup(identity, "a")
        b = await signup(identity, "b")
        assert a.id != b.id


class TestLogin:
    async def test_correct_credentials(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        identity.logout()

        assert await identity.login("alice", "secret1")
        assert identity.get_current_user() == alice
        assert identity.auth_error is None

    async def test_unknown_user(self, identity: IdentityStore) -> None:
        assert await identity.login("nobody", "x") is False
        assert isinstance(identity.failure, UserNotFoundError)

    async def test_wrong_password_does_not_mutate_profiles(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        identity.logout()
        before = [p.to_dict() for p in identity.profiles]

        assert await identity.login("Alice", "wrong") is False
        assert isinstance(identity.failure, InvalidCredentialError)
        assert identity.auth_error == "Invalid password"
        assert [p.to_dict() for p in identity.profiles] == before

    async def test_missing_credential(self, identity: IdentityStore) -> None:
        await identity.create_profile("Legacy")
        identity.logout()
        assert await identity.login("Legacy", "anything") is False
        assert isinstance(identity.failure, MissingCredentialError)

    async def test_failed_login_keeps_existing_session(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert await identity.login("Alice", "wrong") is False
        assert identity.get_current_user() == alice

    async def test_login_clears_previous_error(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        await identity.login("Alice", "wrong")
        assert await identity.login("Alice", "secret1")
        assert identity.auth_error is None
        assert identity.failure is None


class TestLogout:
    async def test_logout_clears_session_and_storage(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        await signup(identity, "Alice")
        identity.logout()
        assert identity.get_current_user() is None
        assert sessions.read() is None

    async def test_logout_without_session_is_noop(self, identity: IdentityStore) -> None:
        identity.logout()
        assert identity.get_current_user() is None


class TestCheckSession:
    async def test_restores_live_session(self) -> None:
        backend = InMemoryDocumentBackend()
        storage = MemoryStorage()
        first = _store(backend, storage)
        await first.initialize()
        alice = await signup(first, "Alice")
        await first.close()

        second = _store(backend, storage)
        await second.initialize()
        second.check_session()
        assert second.get_current_user() == alice
        assert second.is_loading is False
        assert second.session_checked
        await second.close()

    async def test_stale_session_is_purged(self) -> None:
        storage = MemoryStorage()
        SessionManager(storage).write("deleted-user")
        store = _store(InMemoryDocumentBackend(), storage)

        store.check_session()

        assert store.get_current_user() is None
        assert store.active_profile_id is None
        assert SessionManager(storage).read() is None

    async def test_idempotent(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        identity.check_session()
        identity.check_session()
        assert identity.get_current_user() == alice


class TestNameUniqueness:
    async def test_is_name_unique(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert identity.is_name_unique("Bob")
        assert not identity.is_name_unique(" alice ")
        assert identity.is_name_unique("ALICE", exclude_id=alice.id)

    async def test_find_by_name(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert identity.find_by_name("ALICE") == alice
        assert identity.find_by_name("bob") is None


class TestProfileEdits:
    async def test_update_details_merges_patch(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert await identity.update_profile_details(
            alice.id, {"genres": ["rpg"], "player_type": "casual"}
        )
        updated = identity.get_profile(alice.id)
        assert updated.genres == ["rpg"]
        assert updated.player_type == "casual"
        assert updated.name == "Alice"

    async def test_id_and_credential_not_patchable(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        await identity.update_profile_details(
            alice.id, {"id": "hijack", "credential": "new", "created_at": 0}
        )
        profile = identity.get_profile(alice.id)
        assert profile is not None
        assert profile.credential == "secret1"
        assert profile.created_at != 0

    async def test_rename_to_taken_name_fails(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        bob = await signup(identity, "Bob")
        assert await identity.update_profile_name(bob.id, "ALICE") is False
        assert isinstance(identity.failure, NameTakenError)
        assert identity.get_profile(bob.id).name == "Bob"

    async def test_rename_own_case_change_allowed(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert await identity.update_profile_name(alice.id, " ALICE ")
        assert identity.get_profile(alice.id).name == "ALICE"

    async def test_rename_to_blank_fails(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        assert await identity.update_profile_name(alice.id, "   ") is False
        assert isinstance(identity.failure, ValidationFailedError)
        assert identity.failure.field_errors == {"name": "Username cannot be blank"}
        assert identity.get_profile(alice.id).name == "Alice"

    async def test_blank_signup_name_fails(self, identity: IdentityStore) -> None:
        assert await identity.signup("  ", "secret1") is False
        assert isinstance(identity.failure, ValidationFailedError)
        assert identity.profiles == []
        assert await identity.create_profile("") is None

    async def test_update_missing_profile(self, identity: IdentityStore) -> None:
        assert await identity.update_profile_details("nope", {"genres": []}) is False

    async def test_delete_active_profile_logs_out(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        alice = await signup(identity, "Alice")
        assert await identity.delete_profile(alice.id)
        assert identity.get_profile(alice.id) is None
        assert identity.get_current_user() is None
        assert sessions.read() is None

    async def test_delete_other_profile_keeps_session(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        identity.logout()
        bob = await signup(identity, "Bob")
        assert await identity.delete_profile(alice.id)
        assert identity.get_current_user() == bob


class TestLegacyProfileSwitching:
    async def test_create_profile_activates_it(self, identity: IdentityStore) -> None:
        profile = await identity.create_profile("Guest")
        assert profile is not None
        assert profile.credential is None
        assert identity.get_current_user() == profile

    async def test_set_active_profile(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        await signup(identity, "Bob")
        assert identity.set_active_profile(alice.id)
        assert identity.get_current_user() == alice
        assert identity.set_active_profile("missing") is False

    async def test_viewing_profile(self, identity: IdentityStore) -> None:
        alice = await signup(identity, "Alice")
        identity.set_viewing_profile(alice.id)
        assert identity.viewing_profile_id == alice.id

    async def test_reset_data(self, identity: IdentityStore, sessions: SessionManager) -> None:
        await signup(identity, "Alice")
        await identity.reset_data()
        assert identity.profiles == []
        assert identity.get_current_user() is None
        assert sessions.read() is None


class TestAdminBootstrap:
    async def test_creates_admin_once(self, identity: IdentityStore) -> None:
        admin = await identity.ensure_admin_account()
        assert admin is not None
        assert admin.is_admin
        assert admin.name == ADMIN_NAME
        assert await identity.ensure_admin_account() is None
        assert len([p for p in identity.profiles if p.is_admin]) == 1

    async def test_admin_can_log_in_with_bootstrap_password(self) -> None:
        store = IdentityStore(
            InMemoryDocumentBackend(),
            SessionManager(MemoryStorage()),
            config=SyncConfig(doc_id=USERS_DOC),
            admin_password="letmein",
        )
        await store.ensure_admin_account()
        assert await store.login("Admin", "letmein")
        assert store.is_current_user_admin()

    async def test_skipped_when_name_taken_by_regular_user(self, identity: IdentityStore) -> None:
        await signup(identity, "Admin")
        assert await identity.ensure_admin_account() is None
        assert not any(p.is_admin for p in identity.profiles)

    async def test_default_config_bootstraps_on_init(self) -> None:
        store = IdentityStore(InMemoryDocumentBackend(), SessionManager(MemoryStorage()))
        assert await store.initialize()
        assert store.find_by_name(ADMIN_NAME) is not None
        assert store.session_checked
        await store.close()


class TestListenersAndSync:
    async def test_listener_called_and_unsubscribed(self, identity: IdentityStore) -> None:
        calls: list[int] = []
        unsubscribe = identity.add_listener(lambda: calls.append(1))
        await signup(identity, "Alice")
        assert calls
        unsubscribe()
        count = len(calls)
        identity.logout()
        assert len(calls) == count

    async def test_profiles_sync_between_clients(self) -> None:
        backend = InMemoryDocumentBackend()
        first = _store(backend)
        second = _store(backend)
        await first.initialize()
        await second.initialize()
        for _ in range(5):
            await asyncio.sleep(0)

        await signup(first, "Alice")
        for _ in range(5):
            await asyncio.sleep(0)

        assert second.find_by_name("alice") is not None
        # Sessions are local: the other client is still logged out
        assert second.get_current_user() is None
        await first.close()
        await second.close()

    async def test_remote_removal_of_active_profile_logs_out(self) -> None:
        backend = InMemoryDocumentBackend()
        storage = MemoryStorage()
        first = _store(backend, storage)
        await first.initialize()
        alice = await signup(first, "Alice")
        for _ in range(5):
            await asyncio.sleep(0)

        await backend.save(USERS_DOC, {"profiles": []}, origin="other-client")
        for _ in range(5):
            await asyncio.sleep(0)

        assert first.get_profile(alice.id) is None
        assert first.get_current_user() is None
        assert SessionManager(storage).read() is None
        await first.close()

    async def test_document_never_contains_session(self, identity: IdentityStore) -> None:
        await signup(identity, "Alice")
        assert set(identity.to_document()) == {"profiles"}

    def test_profile_document_round_trip(self) -> None:
        profile = UserProfile(
            id="u1", name="Alice", created_at=1, credential="c", is_admin=True,
            roles=["seller"], genres=["rpg"], games=["Zelda"], player_type="casual",
        )
        assert UserProfile.from_dict(profile.to_dict()) == profile


@pytest.mark.parametrize("name", ["Alice", "ALICE", " alice", "alice "])
async def test_signup_then_duplicate_variants_rejected(identity: IdentityStore, name: str) -> None:
    await signup(identity, "alice")
    assert await identity.signup(name, "pw1234") is False
