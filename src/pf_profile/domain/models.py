"""PlayerProfile: display projection of the current user's UserProfile."""

from dataclasses import dataclass

from src.pf_common.datetime_utils import now_ms
from src.pf_common.enums import PlayerRole
from src.pf_identity.domain.models import UserProfile


@dataclass
class PlayerProfile:
    id: str
    username: str
    display_name: str
    role: PlayerRole
    created_at: int                   # epoch ms, copied from the UserProfile
    updated_at: int
    # Not tracked by identity; only ever set through update_profile()
    email: str = ""
    genres: list[str] | None = None
    games: list[str] | None = None
    player_type: str | None = None

    @classmethod
    def from_user_profile(cls, user: UserProfile, email: str = "") -> "PlayerProfile":
        return cls(
            id=user.id,
            username=user.name,
            display_name=user.name,
            role=PlayerRole.ADMIN if user.is_admin else PlayerRole.REGULAR,
            created_at=user.created_at,
            updated_at=now_ms(),
            email=email,
            genres=list(user.genres) if user.genres is not None else None,
            games=list(user.games) if user.games is not None else None,
            player_type=user.player_type,
        )


# Fields update_profile() may merge; id and created_at stay fixed
LOCAL_FIELDS = frozenset(
    {"username", "display_name", "role", "email", "genres", "games", "player_type"}
)
