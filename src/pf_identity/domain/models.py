"""Domain models for pf_identity: pure dataclasses, no sync dependency."""

from dataclasses import dataclass, field
from typing import Any


def normalize_name(name: str) -> str:
    """Comparison form of a display name: trimmed, case-folded."""
    return name.strip().casefold()


@dataclass
class UserProfile:
    id: str
    name: str
    created_at: int                   # epoch ms
    # Opaque credential compared verbatim; no hashing at this layer
    credential: str | None = None
    is_admin: bool = False
    roles: list[str] = field(default_factory=list)
    genres: list[str] | None = None
    games: list[str] | None = None
    player_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "credential": self.credential,
            "isAdmin": self.is_admin,
            "roles": list(self.roles),
            "genres": list(self.genres) if self.genres is not None else None,
            "games": list(self.games) if self.games is not None else None,
            "playerType": self.player_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserProfile":
        genres = data.get("genres")
        games = data.get("games")
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=int(data.get("createdAt", 0)),
            credential=data.get("credential"),
            is_admin=bool(data.get("isAdmin", False)),
            roles=list(data.get("roles") or []),
            genres=list(genres) if genres is not None else None,
            games=list(games) if games is not None else None,
            player_type=data.get("playerType"),
        )


# Fields a profile edit may touch; id, created_at and credential are excluded
PATCHABLE_FIELDS = frozenset({"name", "genres", "games", "player_type", "roles", "is_admin"})
