"""Tests for PlayerProfileStore: projection mirroring and delegated auth."""

from src.pf_common.enums import PlayerRole
from src.pf_identity.application.store import IdentityStore
from src.pf_profile.application.store import PlayerProfileStore
from src.pf_profile.domain.models import PlayerProfile
from src.pf_session.application.service import SessionManager
from tests.factories import signup


def _profiles(identity: IdentityStore, sessions: SessionManager) -> PlayerProfileStore:
    return PlayerProfileStore(identity, sessions)


class TestMirroring:
    async def test_starts_empty_when_logged_out(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        assert store.profile is None
        assert store.is_authenticated is False
        assert store.session is None

    async def test_signup_through_identity_is_mirrored(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        user = await signup(identity, "Alice")

        assert store.is_authenticated
        assert store.session is not None
        assert store.session.user_id == user.id
        assert store.profile.id == user.id
        assert store.profile.username == "Alice"
        assert store.profile.display_name == "Alice"
        assert store.profile.email == ""
        assert store.profile.role == PlayerRole.REGULAR

    async def test_admin_maps_to_admin_role(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        await identity.ensure_admin_account()
        assert await identity.login("admin", "adminpass")
        assert store.profile.role == PlayerRole.ADMIN

    async def test_logout_clears_projection(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        await signup(identity, "Alice")
        store.logout()
        assert identity.get_current_user() is None
        assert store.profile is None
        assert store.is_authenticated is False

    async def test_identity_edits_flow_into_projection(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        user = await signup(identity, "Alice")
        await identity.update_profile_details(user.id, {"genres": ["rpg"], "name": "Alicia"})
        assert store.profile.genres == ["rpg"]
        assert store.profile.username == "Alicia"

    async def test_close_stops_mirroring(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        store.close()
        await signup(identity, "Alice")
        assert store.profile is None


class TestLocalUpdates:
    async def test_update_profile_is_local_only(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        user = await signup(identity, "Alice")

        store.update_profile({"display_name": "Ally", "email": "a@example.com"})

        assert store.profile.display_name == "Ally"
        assert identity.get_profile(user.id).name == "Alice"

    async def test_email_survives_mirror_but_tracked_fields_do_not(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        user = await signup(identity, "Alice")
        store.update_profile({"display_name": "Ally", "email": "a@example.com"})

        await identity.update_profile_details(user.id, {"player_type": "casual"})

        assert store.profile.email == "a@example.com"
        assert store.profile.display_name == "Alice"
        assert store.profile.player_type == "casual"

    async def test_email_dropped_when_user_changes(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        await signup(identity, "Alice")
        store.update_profile({"email": "a@example.com"})
        identity.logout()
        await signup(identity, "Bob")
        assert store.profile.email == ""

    async def test_update_without_profile_is_noop(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        assert store.update_profile({"email": "x"}) is None

    async def test_id_not_editable(self, identity: IdentityStore, sessions: SessionManager) -> None:
        store = _profiles(identity, sessions)
        user = await signup(identity, "Alice")
        store.update_profile({"id": "other"})
        assert store.profile.id == user.id

    async def test_unknown_role_is_recorded(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        await signup(identity, "Alice")

        assert store.update_profile({"role": "overlord", "email": "a@b"}) is None
        assert store.error == "Validation failed: role: Invalid role: 'overlord'"
        assert store.profile.role == PlayerRole.REGULAR
        assert store.profile.email == ""

        assert store.update_profile({"role": "seller"}).role == PlayerRole.SELLER
        assert store.error is None


class TestDelegatedAuth:
    async def test_login_and_failure_message(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        await signup(identity, "Alice")
        store.logout()

        assert await store.login("Alice", "wrong") is False
        assert store.error == "Invalid password"
        assert store.is_authenticated is False

        assert await store.login("Alice", "secret1")
        assert store.is_authenticated
        assert store.error is None

    async def test_signup_name_taken(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        assert await store.signup("Alice", "secret1")
        store.logout()
        assert await store.signup("ALICE", "secret1") is False
        assert store.error == "Username already exists"

    async def test_fetch_profile_errors(
        self, identity: IdentityStore, sessions: SessionManager
    ) -> None:
        store = _profiles(identity, sessions)
        assert store.fetch_profile_from_user() is None
        assert store.error == "No active user found"

        identity.active_profile_id = "ghost"
        assert store.fetch_profile_from_user() is None
        assert store.error == "User profile not found"
        assert store.is_loading is False

    async def test_plain_setters(self, identity: IdentityStore, sessions: SessionManager) -> None:
        store = _profiles(identity, sessions)
        store.set_loading(True)
        store.set_error("boom")
        assert store.is_loading is False
        assert store.error == "boom"
        profile = PlayerProfile(
            id="p", username="u", display_name="u", role=PlayerRole.SELLER,
            created_at=1, updated_at=1,
        )
        store.set_profile(profile)
        assert store.profile == profile
        assert store.error is None
        store.clear_profile()
        assert store.profile is None
