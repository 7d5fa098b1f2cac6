"""Domain models for pf_listing: pure dataclasses plus their document codec."""

from dataclasses import dataclass, field
from typing import Any

from src.pf_common.enums import ItemCategory, ItemCondition, ListingStatus, ListingType


@dataclass
class ListingImage:
    id: str
    url: str
    is_primary: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "isPrimary": self.is_primary}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListingImage":
        return cls(id=data["id"], url=data["url"], is_primary=bool(data.get("isPrimary", False)))


@dataclass
class Listing:
    id: str
    created_at: int              # epoch ms
    updated_at: int              # epoch ms
    seller_id: str
    seller_name: str             # denormalized at creation
    title: str
    short_description: str
    detailed_description: str
    listing_type: ListingType
    category: str                # ItemCategory or ServiceCategory value
    price: str                   # free-form text, see filters.parse_price
    location: str
    is_remote: bool
    contact_info: str
    condition: ItemCondition | None = None
    tags: list[str] = field(default_factory=list)
    images: list[ListingImage] = field(default_factory=list)
    status: ListingStatus = ListingStatus.ACTIVE

    @property
    def primary_image(self) -> ListingImage | None:
        return next((img for img in self.images if img.is_primary), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "sellerId": self.seller_id,
            "sellerName": self.seller_name,
            "title": self.title,
            "shortDescription": self.short_description,
            "detailedDescription": self.detailed_description,
            "listingType": self.listing_type.value,
            "category": self.category,
            "price": self.price,
            "condition": self.condition.value if self.condition else None,
            "location": self.location,
            "isRemote": self.is_remote,
            "contactInfo": self.contact_info,
            "tags": list(self.tags),
            "images": [img.to_dict() for img in self.images],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Listing":
        condition = data.get("condition")
        return cls(
            id=data["id"],
            created_at=int(data["createdAt"]),
            updated_at=int(data["updatedAt"]),
            seller_id=data["sellerId"],
            seller_name=data["sellerName"],
            title=data["title"],
            short_description=data.get("shortDescription", ""),
            detailed_description=data.get("detailedDescription", ""),
            listing_type=ListingType(data["listingType"]),
            category=data["category"],
            price=data.get("price", ""),
            condition=ItemCondition(condition) if condition else None,
            location=data.get("location", ""),
            is_remote=bool(data.get("isRemote", False)),
            contact_info=data.get("contactInfo", ""),
            tags=list(data.get("tags") or []),
            images=[ListingImage.from_dict(img) for img in data.get("images") or []],
            status=ListingStatus(data.get("status", ListingStatus.ACTIVE.value)),
        )


@dataclass
class ListingFormData:
    """Raw form input. `tags` is the comma-separated string the user typed."""

    listing_type: ListingType = ListingType.SELL
    category: str = ItemCategory.VIDEO_GAME.value
    title: str = ""
    short_description: str = ""
    detailed_description: str = ""
    price: str = ""
    condition: ItemCondition | None = ItemCondition.NEW
    location: str = ""
    is_remote: bool = False
    contact_info: str = ""
    tags: str = ""


# Keys accepted by ListingStore.update_listing; seller, id, status and timestamps are not
FORM_FIELDS = frozenset(ListingFormData.__dataclass_fields__)


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag string. Order kept, blanks dropped, no dedup."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def form_from_listing(listing: Listing) -> ListingFormData:
    """Form view of a stored listing, used to re-validate merged updates."""
    return ListingFormData(
        listing_type=listing.listing_type,
        category=listing.category,
        title=listing.title,
        short_description=listing.short_description,
        detailed_description=listing.detailed_description,
        price=listing.price,
        condition=listing.condition,
        location=listing.location,
        is_remote=listing.is_remote,
        contact_info=listing.contact_info,
        tags=", ".join(listing.tags),
    )
