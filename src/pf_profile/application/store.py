"""PlayerProfileStore: the current user's profile, derived from IdentityStore.

IdentityStore is the only identity service. login/signup/logout/check_session
delegate to it, and every identity change re-mirrors the projection.
update_profile() edits the local copy only: fields identity tracks are
overwritten at the next mirror, while `email` is kept for as long as the
same user stays active.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any

from src.pf_common.datetime_utils import now_ms
from src.pf_common.enums import PlayerRole
from src.pf_common.errors import ValidationFailedError
from src.pf_identity.application.store import IdentityStore
from src.pf_profile.domain.models import LOCAL_FIELDS, PlayerProfile
from src.pf_session.application.service import SessionManager
from src.pf_session.domain.models import SessionRecord

logger = logging.getLogger(__name__)


class PlayerProfileStore:
    def __init__(self, identity: IdentityStore, sessions: SessionManager) -> None:
        self._identity = identity
        self._sessions = sessions

        self.profile: PlayerProfile | None = None
        self.is_loading = False
        self.error: str | None = None
        self.is_authenticated = False
        self.session: SessionRecord | None = None

        self._unsubscribe = identity.add_listener(self._mirror)
        self._mirror()

    def close(self) -> None:
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Plain setters
    # ------------------------------------------------------------------

    def set_profile(self, profile: PlayerProfile | None) -> None:
        self.profile = profile
        self.is_loading = False
        self.error = None

    def update_profile(self, patch: Mapping[str, Any]) -> PlayerProfile | None:
        """Merge into the local projection. Never written back to IdentityStore."""
        if self.profile is None:
            return None
        rejected = set(patch) - LOCAL_FIELDS
        if rejected:
            logger.warning("Ignoring non-editable player profile fields: %s", sorted(rejected))
        changes = {k: v for k, v in patch.items() if k in LOCAL_FIELDS}
        if "role" in changes:
            try:
                changes["role"] = PlayerRole(changes["role"])
            except ValueError:
                exc = ValidationFailedError({"role": f"Invalid role: {changes['role']!r}"})
                logger.warning("Player profile update failed: %s", exc.message)
                self.set_error(exc.message)
                return None
        self.profile = dataclasses.replace(self.profile, **changes, updated_at=now_ms())
        self.error = None
        return self.profile

    def clear_profile(self) -> None:
        self.profile = None
        self.is_loading = False
        self.error = None
        self.is_authenticated = False
        self.session = None

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def set_error(self, error: str | None) -> None:
        self.error = error
        self.is_loading = False

    # ------------------------------------------------------------------
    # Authentication (delegated)
    # ------------------------------------------------------------------

    async def login(self, name: str, credential: str) -> bool:
        ok = await self._identity.login(name, credential)
        if not ok:
            self.set_error(self._identity.auth_error)
        return ok

    async def signup(self, name: str, credential: str) -> bool:
        ok = await self._identity.signup(name, credential)
        if not ok:
            self.set_error(self._identity.auth_error)
        return ok

    def logout(self) -> None:
        self._identity.logout()

    def check_session(self) -> None:
        self._identity.check_session()

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def fetch_profile_from_user(self) -> PlayerProfile | None:
        """Rebuild the projection from the active UserProfile."""
        self.set_loading(True)
        user_id = self._identity.active_profile_id
        if not user_id:
            self.set_error("No active user found")
            return None
        user = self._identity.get_profile(user_id)
        if user is None:
            self.set_error("User profile not found")
            return None

        email = ""
        if self.profile is not None and self.profile.id == user.id:
            email = self.profile.email
        self.set_profile(PlayerProfile.from_user_profile(user, email=email))
        return self.profile

    def _mirror(self) -> None:
        if self._identity.get_current_user() is None:
            if self.is_authenticated or self.profile is not None:
                logger.info("Identity session ended; clearing player profile")
            self.clear_profile()
            self.error = self._identity.auth_error
            return

        self.is_authenticated = True
        self.session = self._sessions.read()
        self.fetch_profile_from_user()
