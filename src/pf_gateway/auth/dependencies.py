"""FastAPI dependencies: store accessors and get_current_user.

Stores live on app.state.stores (built in the lifespan). Usage:
    from src.pf_gateway.auth.dependencies import get_current_user

    @router.post("/protected")
    async def protected(user: UserProfile = Depends(get_current_user)):
        ...
"""

from fastapi import Depends, Request

from src.pf_common.errors import NotAuthenticatedError
from src.pf_gateway.container import StoreContainer
from src.pf_identity.application.store import IdentityStore
from src.pf_identity.domain.models import UserProfile
from src.pf_listing.application.store import ListingStore
from src.pf_profile.application.store import PlayerProfileStore


def get_stores(request: Request) -> StoreContainer:
    stores: StoreContainer = request.app.state.stores
    return stores


def get_identity_store(stores: StoreContainer = Depends(get_stores)) -> IdentityStore:
    return stores.identity


def get_listing_store(stores: StoreContainer = Depends(get_stores)) -> ListingStore:
    return stores.listings


def get_profile_store(stores: StoreContainer = Depends(get_stores)) -> PlayerProfileStore:
    return stores.profiles


def get_current_user(
    identity: IdentityStore = Depends(get_identity_store),
) -> UserProfile:
    """Resolve the session's profile. Raises NotAuthenticatedError (401) if none."""
    user = identity.get_current_user()
    if user is None:
        raise NotAuthenticatedError("access this resource")
    return user
