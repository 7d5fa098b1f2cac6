"""Identity API routers.

POST   /auth/signup                 create account + start session
POST   /auth/login                  start session
POST   /auth/logout                 end session
GET    /auth/session                current session
GET    /profiles                    all profiles (no credentials)
GET    /profiles/name-available     case-insensitive uniqueness check
PATCH  /profiles/{profile_id}       partial profile edit
PUT    /profiles/{profile_id}/name  rename
DELETE /profiles/{profile_id}       delete (logs out if active)

Profile edits are restricted to the profile's own session or an admin.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.pf_common.errors import AppError, InternalError, ProfileNotFoundError
from src.pf_common.response import ApiResponse, success_response
from src.pf_gateway.auth.dependencies import get_current_user, get_identity_store
from src.pf_identity.application.schemas import (
    LoginRequest,
    ProfileDetailsPatch,
    ProfileNameUpdate,
    SessionOut,
    SignupRequest,
    UserProfileOut,
)
from src.pf_identity.application.store import IdentityStore
from src.pf_identity.domain.models import UserProfile

auth_router = APIRouter(prefix="/auth", tags=["auth"])
profiles_router = APIRouter(prefix="/profiles", tags=["profiles"])

IdentityDep = Annotated[IdentityStore, Depends(get_identity_store)]
CurrentUser = Annotated[UserProfile, Depends(get_current_user)]


def _get_request_id(request: Request) -> str | None:
    """request_id set by RequestLogMiddleware; None outside the middleware."""
    return getattr(request.state, "request_id", None)


def _failure(identity: IdentityStore) -> AppError:
    return identity.failure or InternalError(identity.auth_error or "Identity action failed")


def _session_out(identity: IdentityStore) -> SessionOut:
    user = identity.get_current_user()
    return SessionOut(
        authenticated=user is not None,
        user=UserProfileOut.from_domain(user) if user else None,
        is_admin=identity.is_current_user_admin(),
        sync_ready=identity.is_initialized,
    )


def _profile_out(identity: IdentityStore, profile_id: str) -> dict[str, object]:
    profile = identity.get_profile(profile_id)
    if profile is None:
        raise ProfileNotFoundError(profile_id)
    return UserProfileOut.from_domain(profile).model_dump(mode="json")


def _ok(request: Request, data: object, message: str = "success") -> ApiResponse:
    return success_response(data, message, _get_request_id(request))


def _require_self_or_admin(user: UserProfile, profile_id: str) -> None:
    if user.id != profile_id and not user.is_admin:
        raise AppError(1007, "You can only modify your own profile", 403)


# ---------------------------------------------------------------------------
# /auth
# ---------------------------------------------------------------------------


@auth_router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def signup(request: Request, body: SignupRequest, identity: IdentityDep) -> ApiResponse:
    if not await identity.signup(body.username, body.password):
        raise _failure(identity)
    data = _session_out(identity).model_dump(mode="json")
    return _ok(request, data, "User registered successfully")


@auth_router.post("/login", response_model=ApiResponse)
async def login(request: Request, body: LoginRequest, identity: IdentityDep) -> ApiResponse:
    if not await identity.login(body.username, body.password):
        raise _failure(identity)
    return _ok(request, _session_out(identity).model_dump(mode="json"), "Login successful")


@auth_router.post("/logout", response_model=ApiResponse)
async def logout(request: Request, identity: IdentityDep) -> ApiResponse:
    identity.logout()
    return _ok(request, None, "Logged out")


@auth_router.get("/session", response_model=ApiResponse)
async def get_session(request: Request, identity: IdentityDep) -> ApiResponse:
    return _ok(request, _session_out(identity).model_dump(mode="json"))


# ---------------------------------------------------------------------------
# /profiles
# ---------------------------------------------------------------------------


@profiles_router.get("", response_model=ApiResponse)
async def list_profiles(request: Request, identity: IdentityDep) -> ApiResponse:
    items = [UserProfileOut.from_domain(p).model_dump(mode="json") for p in identity.profiles]
    return _ok(request, {"items": items})


@profiles_router.get("/name-available", response_model=ApiResponse)
async def name_available(
    request: Request,
    identity: IdentityDep,
    name: str = Query(..., min_length=1),
    exclude_id: str | None = Query(None),
) -> ApiResponse:
    return _ok(request, {"name": name, "available": identity.is_name_unique(name, exclude_id)})


@profiles_router.patch("/{profile_id}", response_model=ApiResponse)
async def update_profile_details(
    profile_id: str,
    request: Request,
    body: ProfileDetailsPatch,
    identity: IdentityDep,
    current_user: CurrentUser,
) -> ApiResponse:
    _require_self_or_admin(current_user, profile_id)
    patch = body.model_dump(exclude_unset=True, exclude_none=True)
    if not await identity.update_profile_details(profile_id, patch):
        raise _failure(identity)
    return _ok(request, _profile_out(identity, profile_id))


@profiles_router.put("/{profile_id}/name", response_model=ApiResponse)
async def update_profile_name(
    profile_id: str,
    request: Request,
    body: ProfileNameUpdate,
    identity: IdentityDep,
    current_user: CurrentUser,
) -> ApiResponse:
    _require_self_or_admin(current_user, profile_id)
    if not await identity.update_profile_name(profile_id, body.name):
        raise _failure(identity)
    return _ok(request, _profile_out(identity, profile_id))


@profiles_router.delete("/{profile_id}", response_model=ApiResponse)
async def delete_profile(
    profile_id: str,
    request: Request,
    identity: IdentityDep,
    current_user: CurrentUser,
) -> ApiResponse:
    _require_self_or_admin(current_user, profile_id)
    if not await identity.delete_profile(profile_id):
        raise _failure(identity)
    return _ok(request, {"deleted": profile_id}, "Profile deleted")
