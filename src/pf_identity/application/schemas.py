"""Pydantic request/response schemas for pf_identity.

All responses are wrapped in ApiResponse at the router layer.
Credentials never leave the store: UserProfileOut has no credential field.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.pf_common.datetime_utils import ms_to_datetime
from src.pf_identity.domain.models import UserProfile


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username and password are required")
        return v


class LoginRequest(BaseModel):
    username: str
    password: str


class ProfileDetailsPatch(BaseModel):
    """Editable profile fields. Admin flag, roles, id and credential are not exposed."""

    name: str | None = Field(None, min_length=1, max_length=64)
    genres: list[str] | None = None
    games: list[str] | None = None
    player_type: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Username cannot be blank")
        return v


class ProfileNameUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username cannot be blank")
        return v


class UserProfileOut(BaseModel):
    id: str
    name: str
    created_at: datetime
    is_admin: bool
    roles: list[str]
    genres: list[str] | None
    games: list[str] | None
    player_type: str | None

    @classmethod
    def from_domain(cls, p: UserProfile) -> "UserProfileOut":
        return cls(
            id=p.id,
            name=p.name,
            created_at=ms_to_datetime(p.created_at),
            is_admin=p.is_admin,
            roles=list(p.roles),
            genres=p.genres,
            games=p.games,
            player_type=p.player_type,
        )


class SessionOut(BaseModel):
    authenticated: bool
    user: UserProfileOut | None
    is_admin: bool
    sync_ready: bool
