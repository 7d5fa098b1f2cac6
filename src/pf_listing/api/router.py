"""pf_listing REST endpoints.

GET    /listings                      active listings, search + filters
GET    /listings/filter-options       filter panel counts and price bounds
GET    /listings/seller/{seller_id}   all listings of one seller
GET    /listings/{listing_id}         detail
POST   /listings                      create (form validated step by step)
PATCH  /listings/{listing_id}         partial update, owner only
DELETE /listings/{listing_id}         delete, owner only
PUT    /listings/{listing_id}/status  status change, owner only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.pf_common.errors import (
    AppError,
    InternalError,
    ListingNotFoundError,
    ValidationFailedError,
)
from src.pf_common.response import ApiResponse, success_response
from src.pf_gateway.auth.dependencies import get_listing_store
from src.pf_listing.application.filters import MarketplaceFilters, filter_listings, filter_options
from src.pf_listing.application.schemas import (
    FilterOptionsOut,
    ListingCreateRequest,
    ListingOut,
    ListingStatusRequest,
    ListingUpdateRequest,
)
from src.pf_listing.application.store import ListingStore
from src.pf_listing.domain.models import Listing
from src.pf_listing.domain.validation import first_step_with_errors, validate_all

router = APIRouter(prefix="/listings", tags=["listings"])

ListingDep = Annotated[ListingStore, Depends(get_listing_store)]


def _ok(request: Request, data: object, message: str = "success") -> ApiResponse:
    return success_response(data, message, getattr(request.state, "request_id", None))


def _failure(store: ListingStore) -> AppError:
    return store.failure or InternalError(store.error or "Listing action failed")


def _out(store: ListingStore, listing: Listing) -> dict[str, object]:
    return ListingOut.from_domain(listing, store.is_owner(listing)).model_dump(mode="json")


@router.get("")
async def list_active_listings(
    request: Request,
    store: ListingDep,
    q: str = Query("", description="Search title, short description, seller name and tags"),
    category: list[str] = Query([]),
    price_min: float | None = Query(None, ge=0),
    price_max: float | None = Query(None, ge=0),
    location: str = Query("", pattern=r"^(|local|national|international)$"),
    seller_type: list[str] = Query([]),
) -> ApiResponse:
    filters = MarketplaceFilters(
        query=q,
        categories=category,
        price_min=price_min,
        price_max=price_max,
        location=location,
        seller_types=seller_type,
    )
    items = filter_listings(store.get_active_listings(), filters)
    return _ok(request, {"items": [_out(store, item) for item in items], "total": len(items)})


@router.get("/filter-options")
async def get_filter_options(request: Request, store: ListingDep) -> ApiResponse:
    options = filter_options(store.get_active_listings())
    return _ok(request, FilterOptionsOut.from_options(options).model_dump())


@router.get("/seller/{seller_id}")
async def list_seller_listings(seller_id: str, request: Request, store: ListingDep) -> ApiResponse:
    items = store.get_listings_by_seller(seller_id)
    return _ok(request, {"items": [_out(store, item) for item in items], "total": len(items)})


@router.get("/{listing_id}")
async def get_listing(listing_id: str, request: Request, store: ListingDep) -> ApiResponse:
    listing = store.get_listing_by_id(listing_id)
    if listing is None:
        raise ListingNotFoundError()
    return _ok(request, _out(store, listing))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    request: Request, body: ListingCreateRequest, store: ListingDep
) -> ApiResponse:
    form = body.to_form()
    errors = validate_all(form)
    if errors:
        raise ValidationFailedError(errors, first_step_with_errors(errors))
    listing = await store.create_listing(form, body.image_sources())
    return _ok(request, _out(store, listing), "Listing created successfully")


@router.patch("/{listing_id}")
async def update_listing(
    listing_id: str, request: Request, body: ListingUpdateRequest, store: ListingDep
) -> ApiResponse:
    updated = await store.update_listing(listing_id, body.to_patch(), body.image_sources())
    if updated is None:
        raise _failure(store)
    return _ok(request, _out(store, updated), "Listing updated")


@router.delete("/{listing_id}")
async def delete_listing(listing_id: str, request: Request, store: ListingDep) -> ApiResponse:
    if not await store.delete_listing(listing_id):
        raise _failure(store)
    return _ok(request, {"deleted": listing_id}, "Listing deleted")


@router.put("/{listing_id}/status")
async def set_listing_status(
    listing_id: str, request: Request, body: ListingStatusRequest, store: ListingDep
) -> ApiResponse:
    if not await store.set_listing_status(listing_id, body.status):
        raise _failure(store)
    listing = store.get_listing_by_id(listing_id)
    if listing is None:
        raise ListingNotFoundError()
    return _ok(request, _out(store, listing), "Listing status updated")
