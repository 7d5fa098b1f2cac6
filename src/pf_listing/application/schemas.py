"""Pydantic request/response schemas for pf_listing.

Requests carry the same shape as the creation form; images are passed as
already-hosted URLs (DirectURL) since uploads are handled elsewhere.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pf_common.datetime_utils import ms_to_datetime
from src.pf_common.enums import ItemCondition, ListingStatus, ListingType
from src.pf_listing.application.filters import FilterOptions
from src.pf_listing.domain.images import DirectURL
from src.pf_listing.domain.models import Listing, ListingFormData

_CONDITION_TEXT = {
    ItemCondition.NEW: "New",
    ItemCondition.LIKE_NEW: "Like New",
    ItemCondition.GOOD: "Used - Good",
    ItemCondition.FAIR: "Used - Fair",
    ItemCondition.FOR_PARTS: "For Parts Only",
}

_LISTING_TYPE_TEXT = {
    ListingType.SELL: "For Sale",
    ListingType.BUY: "Wanted",
    ListingType.TRADE: "For Trade",
    ListingType.OFFER_SERVICE: "Service Offered",
    ListingType.REQUEST_SERVICE: "Service Wanted",
}


def condition_text(condition: ItemCondition | None) -> str:
    if condition is None:
        return "Not specified"
    return _CONDITION_TEXT.get(condition, condition.value.replace("_", " "))


def listing_type_text(listing_type: ListingType) -> str:
    return _LISTING_TYPE_TEXT.get(listing_type, listing_type.value.replace("_", " "))


def primary_image_index(listing: Listing) -> int:
    return next((i for i, img in enumerate(listing.images) if img.is_primary), 0)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ListingCreateRequest(BaseModel):
    listing_type: ListingType = ListingType.SELL
    category: str
    title: str = Field(..., max_length=140)
    short_description: str = ""
    detailed_description: str = Field("", max_length=5000)
    price: str
    condition: ItemCondition | None = None
    location: str = ""
    is_remote: bool = False
    contact_info: str
    tags: str = ""
    image_urls: list[str] = Field(default_factory=list)

    def to_form(self) -> ListingFormData:
        return ListingFormData(
            listing_type=self.listing_type,
            category=self.category,
            title=self.title,
            short_description=self.short_description,
            detailed_description=self.detailed_description,
            price=self.price,
            condition=self.condition,
            location=self.location,
            is_remote=self.is_remote,
            contact_info=self.contact_info,
            tags=self.tags,
        )

    def image_sources(self) -> list[DirectURL]:
        return [DirectURL(url) for url in self.image_urls if url.strip()]


class ListingUpdateRequest(BaseModel):
    listing_type: ListingType | None = None
    category: str | None = None
    title: str | None = Field(None, max_length=140)
    short_description: str | None = None
    detailed_description: str | None = Field(None, max_length=5000)
    price: str | None = None
    condition: ItemCondition | None = None
    location: str | None = None
    is_remote: bool | None = None
    contact_info: str | None = None
    tags: str | None = None
    image_urls: list[str] = Field(default_factory=list)

    def to_patch(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"image_urls"})

    def image_sources(self) -> list[DirectURL]:
        return [DirectURL(url) for url in self.image_urls if url.strip()]


class ListingStatusRequest(BaseModel):
    status: ListingStatus


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ListingImageOut(BaseModel):
    id: str
    url: str
    is_primary: bool


class ListingOut(BaseModel):
    id: str
    created_at: datetime
    updated_at: datetime
    seller_id: str
    seller_name: str
    title: str
    short_description: str
    detailed_description: str
    listing_type: ListingType
    listing_type_text: str
    category: str
    price: str
    condition: ItemCondition | None
    condition_text: str
    location: str
    is_remote: bool
    contact_info: str
    tags: list[str]
    images: list[ListingImageOut]
    primary_image_index: int
    status: ListingStatus
    is_own_listing: bool

    @classmethod
    def from_domain(cls, item: Listing, is_own_listing: bool = False) -> "ListingOut":
        return cls(
            id=item.id,
            created_at=ms_to_datetime(item.created_at),
            updated_at=ms_to_datetime(item.updated_at),
            seller_id=item.seller_id,
            seller_name=item.seller_name,
            title=item.title,
            short_description=item.short_description,
            detailed_description=item.detailed_description,
            listing_type=item.listing_type,
            listing_type_text=listing_type_text(item.listing_type),
            category=item.category,
            price=item.price,
            condition=item.condition,
            condition_text=condition_text(item.condition),
            location=item.location,
            is_remote=item.is_remote,
            contact_info=item.contact_info,
            tags=list(item.tags),
            images=[
                ListingImageOut(id=img.id, url=img.url, is_primary=img.is_primary)
                for img in item.images
            ],
            primary_image_index=primary_image_index(item),
            status=item.status,
            is_own_listing=is_own_listing,
        )


class CountOut(BaseModel):
    name: str
    count: int


class FilterOptionsOut(BaseModel):
    categories: list[CountOut]
    locations: list[CountOut]
    price_min: int
    price_max: int

    @classmethod
    def from_options(cls, options: FilterOptions) -> "FilterOptionsOut":
        return cls(
            categories=[CountOut(name=n, count=c) for n, c in options.categories],
            locations=[CountOut(name=n, count=c) for n, c in options.locations],
            price_min=options.price_min,
            price_max=options.price_max,
        )
