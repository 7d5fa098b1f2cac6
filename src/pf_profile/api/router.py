"""Player profile endpoints.

GET   /profile/me  the current user's projection
PATCH /profile/me  local edit (display fields and email only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pf_common.errors import InternalError
from src.pf_common.response import ApiResponse, success_response
from src.pf_gateway.auth.dependencies import get_current_user, get_profile_store
from src.pf_identity.domain.models import UserProfile
from src.pf_profile.application.schemas import PlayerProfileOut, PlayerProfilePatch
from src.pf_profile.application.store import PlayerProfileStore
from src.pf_profile.domain.models import PlayerProfile

router = APIRouter(prefix="/profile", tags=["profile"])

ProfileDep = Annotated[PlayerProfileStore, Depends(get_profile_store)]
CurrentUser = Annotated[UserProfile, Depends(get_current_user)]


def _ok(request: Request, data: object, message: str = "success") -> ApiResponse:
    return success_response(data, message, getattr(request.state, "request_id", None))


def _current(store: PlayerProfileStore, user: UserProfile) -> PlayerProfile:
    if store.profile is None or store.profile.id != user.id:
        store.fetch_profile_from_user()
    if store.profile is None:
        raise InternalError(store.error or "Player profile unavailable")
    return store.profile


@router.get("/me")
async def get_my_profile(request: Request, store: ProfileDep, user: CurrentUser) -> ApiResponse:
    profile = _current(store, user)
    return _ok(request, PlayerProfileOut.from_domain(profile).model_dump(mode="json"))


@router.patch("/me")
async def update_my_profile(
    request: Request, body: PlayerProfilePatch, store: ProfileDep, user: CurrentUser
) -> ApiResponse:
    _current(store, user)
    updated = store.update_profile(body.model_dump(exclude_unset=True, exclude_none=True))
    if updated is None:
        raise InternalError(store.error or "Player profile unavailable")
    return _ok(request, PlayerProfileOut.from_domain(updated).model_dump(mode="json"))
