"""IdentityStore: authoritative registry of user profiles and the active session.

The profile set is mirrored to the users/auth sync document. The active
session pointer is local: it lives in memory and in the durable
`user-session` record owned by SessionManager, never in the synced document.

Every action catches AppError at its boundary, records the message in
`auth_error` (and the exception in `failure` for the HTTP layer) and returns
a falsy value. The return value is authoritative; `auth_error` is for display.

Credentials are compared verbatim and the bootstrap admin gets a well-known
password. Both are development conveniences, not security controls.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from config.settings import settings
from src.pf_common.datetime_utils import now_ms
from src.pf_common.errors import (
    AppError,
    InvalidCredentialError,
    MissingCredentialError,
    NameTakenError,
    ProfileNotFoundError,
    SyncInitFailedError,
    UserNotFoundError,
    ValidationFailedError,
)
from src.pf_common.id_generator import generate_id
from src.pf_identity.domain.models import PATCHABLE_FIELDS, UserProfile, normalize_name
from src.pf_session.application.service import SessionManager
from src.pf_sync.application.store import SyncedStore
from src.pf_sync.domain.models import SyncConfig
from src.pf_sync.domain.repository import DocumentBackendProtocol

logger = logging.getLogger(__name__)

ADMIN_NAME = "admin"

Listener = Callable[[], None]


async def _on_users_synced(store: "IdentityStore") -> None:
    store.check_session()
    await store.ensure_admin_account()


def _clean_name(name: str) -> str:
    """Trimmed display name. Raises ValidationFailedError when nothing is left."""
    cleaned = name.strip()
    if not cleaned:
        raise ValidationFailedError({"name": "Username cannot be blank"})
    return cleaned


def _on_users_sync_error(error: SyncInitFailedError) -> None:
    logger.error("User sync initialization error: %s", error.message)


def default_identity_sync_config() -> SyncConfig:
    return SyncConfig(
        doc_id=settings.USERS_DOC_ID,
        init_timeout_ms=settings.SYNC_INIT_TIMEOUT_MS,
        on_init_complete=_on_users_synced,
        on_init_error=_on_users_sync_error,
    )


class IdentityStore(SyncedStore):
    def __init__(
        self,
        backend: DocumentBackendProtocol,
        sessions: SessionManager,
        config: SyncConfig | None = None,
        client_id: str | None = None,
        admin_password: str | None = None,
    ) -> None:
        super().__init__(backend, config or default_identity_sync_config(), client_id)
        self._sessions = sessions
        self._admin_password = admin_password or settings.ADMIN_BOOTSTRAP_PASSWORD
        self._listeners: list[Listener] = []

        self.profiles: list[UserProfile] = []
        self.active_profile_id: str | None = None
        self.viewing_profile_id: str | None = None
        self.auth_error: str | None = None
        self.failure: AppError | None = None
        self.is_loading = True  # until check_session() has run
        self.session_checked = False

    # ------------------------------------------------------------------
    # Sync document
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        return {"profiles": [p.to_dict() for p in self.profiles]}

    def apply_document(self, state: dict[str, Any]) -> None:
        self.profiles = [UserProfile.from_dict(p) for p in state.get("profiles", [])]

    def after_remote_replace(self) -> None:
        if self.active_profile_id and self.get_profile(self.active_profile_id) is None:
            logger.info("Active profile %s removed remotely; logging out", self.active_profile_id)
            self._clear_session()
        if self.viewing_profile_id and self.get_profile(self.viewing_profile_id) is None:
            self.viewing_profile_id = None
        self._notify()

    # ------------------------------------------------------------------
    # Change listeners (cross-store glue)
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every state change. Returns an unsubscribe."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ------------------------------------------------------------------
    # Lookups (pure)
    # ------------------------------------------------------------------

    def get_profile(self, profile_id: str) -> UserProfile | None:
        return next((p for p in self.profiles if p.id == profile_id), None)

    def get_current_user(self) -> UserProfile | None:
        if not self.active_profile_id:
            return None
        return self.get_profile(self.active_profile_id)

    def find_by_name(self, name: str) -> UserProfile | None:
        normalized = normalize_name(name)
        return next((p for p in self.profiles if normalize_name(p.name) == normalized), None)

    def is_name_unique(self, name: str, exclude_id: str | None = None) -> bool:
        normalized = normalize_name(name)
        return not any(
            p.id != exclude_id and normalize_name(p.name) == normalized for p in self.profiles
        )

    def is_current_user_admin(self) -> bool:
        user = self.get_current_user()
        return user is not None and user.is_admin

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def check_session(self) -> None:
        """Restore the durable session if it still points at a live profile.

        Safe to call repeatedly; a dangling record is purged.
        """
        record = self._sessions.read()
        if record is not None:
            if self.get_profile(record.user_id) is not None:
                self.active_profile_id = record.user_id
                logger.info("Restored session for %s", record.user_id)
            else:
                logger.info("Discarding stale session for %s", record.user_id)
                self._sessions.clear()
        self.is_loading = False
        self.session_checked = True
        self._notify()

    def _start_session(self, profile_id: str) -> None:
        self.active_profile_id = profile_id
        self.viewing_profile_id = None
        self._sessions.write(profile_id)

    def _clear_session(self) -> None:
        self._sessions.clear()
        self.active_profile_id = None
        self.viewing_profile_id = None

    def _fail(self, action: str, exc: AppError) -> None:
        logger.warning("%s failed: %s", action, exc.message)
        self.auth_error = exc.message
        self.failure = exc

    def _reset_error(self) -> None:
        self.auth_error = None
        self.failure = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self, name: str, credential: str) -> bool:
        """Authenticate and start a session.

        A failed attempt leaves any existing session untouched.
        """
        self._reset_error()
        self.is_loading = True
        try:
            user = self.find_by_name(name)
            if user is None:
                raise UserNotFoundError()
            if not user.credential:
                raise MissingCredentialError()
            if user.credential != credential:
                raise InvalidCredentialError()
        except AppError as exc:
            self._fail("Login", exc)
            return False
        finally:
            self.is_loading = False

        self._start_session(user.id)
        logger.info("Login successful: %s (%s)", user.name, user.id)
        self._notify()
        return True

    async def signup(self, name: str, credential: str) -> bool:
        self._reset_error()
        try:
            name = _clean_name(name)
            if not self.is_name_unique(name):
                raise NameTakenError()
        except AppError as exc:
            self._fail("Signup", exc)
            return False

        profile = UserProfile(
            id=generate_id(),
            name=name.strip(),
            created_at=now_ms(),
            credential=credential,
        )
        self.profiles.append(profile)
        self._start_session(profile.id)
        logger.info("Signed up %s (%s)", profile.name, profile.id)
        await self.emit()
        self._notify()
        return True

    def logout(self) -> None:
        self._clear_session()
        self._reset_error()
        logger.info("User logged out")
        self._notify()

    # ------------------------------------------------------------------
    # Legacy profile switching
    # ------------------------------------------------------------------

    async def create_profile(self, name: str) -> UserProfile | None:
        """Create a credential-less profile and make it active (pre-auth flow)."""
        self._reset_error()
        try:
            name = _clean_name(name)
            if not self.is_name_unique(name):
                raise NameTakenError()
        except AppError as exc:
            self._fail("Create profile", exc)
            return None
        profile = UserProfile(id=generate_id(), name=name.strip(), created_at=now_ms())
        self.profiles.append(profile)
        self._start_session(profile.id)
        await self.emit()
        self._notify()
        return profile

    def set_active_profile(self, profile_id: str) -> bool:
        self._reset_error()
        if self.get_profile(profile_id) is None:
            self._fail("Set active profile", ProfileNotFoundError(profile_id))
            return False
        self._start_session(profile_id)
        self._notify()
        return True

    def set_viewing_profile(self, profile_id: str | None) -> None:
        self.viewing_profile_id = profile_id
        self._notify()

    # ------------------------------------------------------------------
    # Profile edits
    # ------------------------------------------------------------------

    async def update_profile_details(self, profile_id: str, patch: Mapping[str, Any]) -> bool:
        """Partial merge into a profile. id, created_at and credential are never touched."""
        self._reset_error()
        rejected = set(patch) - PATCHABLE_FIELDS
        if rejected:
            logger.warning("Ignoring non-patchable profile fields: %s", sorted(rejected))
        changes = {k: v for k, v in patch.items() if k in PATCHABLE_FIELDS}

        try:
            profile = self.get_profile(profile_id)
            if profile is None:
                raise ProfileNotFoundError(profile_id)
            if "name" in changes:
                changes["name"] = _clean_name(changes["name"])
                if not self.is_name_unique(changes["name"], exclude_id=profile_id):
                    raise NameTakenError()
        except AppError as exc:
            self._fail("Profile update", exc)
            return False

        for key, value in changes.items():
            setattr(profile, key, value)
        await self.emit()
        self._notify()
        return True

    async def update_profile_name(self, profile_id: str, name: str) -> bool:
        return await self.update_profile_details(profile_id, {"name": name})

    async def delete_profile(self, profile_id: str) -> bool:
        self._reset_error()
        if self.get_profile(profile_id) is None:
            self._fail("Delete profile", ProfileNotFoundError(profile_id))
            return False

        self.profiles = [p for p in self.profiles if p.id != profile_id]
        if self.active_profile_id == profile_id:
            self._clear_session()
        if self.viewing_profile_id == profile_id:
            self.viewing_profile_id = None
        logger.info("Deleted profile %s", profile_id)
        await self.emit()
        self._notify()
        return True

    async def reset_data(self) -> None:
        """Wipe all profiles and the session. Dev/test helper."""
        self._sessions.clear()
        self.profiles = []
        self.active_profile_id = None
        self.viewing_profile_id = None
        await self.emit()
        self._notify()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def ensure_admin_account(self) -> UserProfile | None:
        """Create the `admin` account on first run. Returns it when created."""
        existing = self.find_by_name(ADMIN_NAME)
        if existing is not None:
            if not existing.is_admin:
                logger.warning(
                    "Profile named %r exists without admin flag; skipping bootstrap", ADMIN_NAME
                )
            return None

        admin = UserProfile(
            id=generate_id(),
            name=ADMIN_NAME,
            created_at=now_ms(),
            credential=self._admin_password,
            is_admin=True,
        )
        self.profiles.append(admin)
        logger.warning("Bootstrapped default admin account (development credential)")
        await self.emit()
        self._notify()
        return admin
