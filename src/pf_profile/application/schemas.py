"""Pydantic schemas for /profile/me."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pf_common.datetime_utils import ms_to_datetime
from src.pf_common.enums import PlayerRole
from src.pf_profile.domain.models import PlayerProfile


class PlayerProfilePatch(BaseModel):
    display_name: str | None = Field(None, min_length=1, max_length=64)
    email: str | None = Field(None, max_length=254)
    genres: list[str] | None = None
    games: list[str] | None = None
    player_type: str | None = None


class PlayerProfileOut(BaseModel):
    id: str
    username: str
    display_name: str
    email: str
    role: PlayerRole
    created_at: datetime
    updated_at: datetime
    genres: list[str] | None
    games: list[str] | None
    player_type: str | None

    @classmethod
    def from_domain(cls, p: PlayerProfile) -> "PlayerProfileOut":
        return cls(
            id=p.id,
            username=p.username,
            display_name=p.display_name,
            email=p.email,
            role=p.role,
            created_at=ms_to_datetime(p.created_at),
            updated_at=ms_to_datetime(p.updated_at),
            genres=p.genres,
            games=p.games,
            player_type=p.player_type,
        )
