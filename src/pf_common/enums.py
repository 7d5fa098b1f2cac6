"""Global enums: values are the wire/document representation."""

from enum import Enum


class ListingType(str, Enum):
    SELL = "sell"
    BUY = "buy"
    TRADE = "trade"
    OFFER_SERVICE = "offer_service"
    REQUEST_SERVICE = "request_service"


class ItemCategory(str, Enum):
    VIDEO_GAME = "video_game"
    BOARD_GAME = "board_game"
    CONSOLE = "console"
    ACCESSORY = "accessory"
    COLLECTIBLE = "collectible"
    OTHER = "other"


class ServiceCategory(str, Enum):
    COACHING = "coaching"
    GAME_MASTER = "game_master"
    MEDIATION = "mediation"
    OTHER = "other"


class ItemCondition(str, Enum):
    NEW = "new"
    LIKE_NEW = "like_new"
    GOOD = "good"
    FAIR = "fair"
    FOR_PARTS = "for_parts"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    INACTIVE = "inactive"


class PlayerRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    SERVICE_PROVIDER = "service_provider"
    ADMIN = "admin"
    REGULAR = "regular"


# Physical-item listings carry a condition; service listings never do
PHYSICAL_LISTING_TYPES = frozenset({ListingType.SELL, ListingType.BUY, ListingType.TRADE})
SERVICE_LISTING_TYPES = frozenset({ListingType.OFFER_SERVICE, ListingType.REQUEST_SERVICE})


def categories_for(listing_type: ListingType) -> frozenset[str]:
    """Category values valid for a listing type."""
    if listing_type in SERVICE_LISTING_TYPES:
        return frozenset(c.value for c in ServiceCategory)
    return frozenset(c.value for c in ItemCategory)
