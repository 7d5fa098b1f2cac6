"""Marketplace browsing: search + filter over listings, and filter-panel options.

Prices are free-form text. parse_price() reads the first number it finds
("$10", "25/hr", "1,200") and returns None otherwise; such listings are
excluded whenever a price bound is active, never when none is.
"""

import math
import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.pf_common.enums import (
    PHYSICAL_LISTING_TYPES,
    SERVICE_LISTING_TYPES,
    ItemCategory,
)
from src.pf_listing.domain.models import Listing

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")

# Genre names offered by the filter panel → listing category
GENRE_CATEGORY_MAP: dict[str, str] = {
    "role-playing": ItemCategory.VIDEO_GAME.value,
    "strategy": ItemCategory.BOARD_GAME.value,
    "action": ItemCategory.VIDEO_GAME.value,
    "adventure": ItemCategory.VIDEO_GAME.value,
}

LOCATION_SCOPES = ("local", "national", "international")
SELLER_TYPES = ("individual", "service")
REMOTE_LABEL = "Remote/Online"


def parse_price(price: str) -> float | None:
    match = _NUMBER_RE.search(price.replace(",", ""))
    if match is None:
        return None
    value = float(match.group())
    return value if math.isfinite(value) else None


@dataclass
class MarketplaceFilters:
    query: str = ""
    categories: list[str] = field(default_factory=list)
    price_min: float | None = None
    price_max: float | None = None
    location: str = ""            # "", "local", "national", "international"
    seller_types: list[str] = field(default_factory=list)


def _matches_query(listing: Listing, query: str) -> bool:
    return (
        query in listing.title.lower()
        or query in listing.short_description.lower()
        or query in listing.seller_name.lower()
        or any(query in tag.lower() for tag in listing.tags)
    )


def _matches_category(listing: Listing, categories: list[str]) -> bool:
    for cat in categories:
        if GENRE_CATEGORY_MAP.get(cat) == listing.category or cat == listing.category:
            return True
        if any(cat.lower() in tag.lower() for tag in listing.tags):
            return True
    return False


def _matches_price(listing: Listing, low: float | None, high: float | None) -> bool:
    price = parse_price(listing.price)
    if price is None:
        return False
    if low is not None and price < low:
        return False
    return not (high is not None and price > high)


def _matches_location(listing: Listing, scope: str) -> bool:
    if scope == "local":
        return not listing.is_remote and listing.location.strip() != ""
    if scope == "international":
        return listing.is_remote
    # "national" and unknown scopes do not narrow
    return True


def _matches_seller_type(listing: Listing, seller_types: list[str]) -> bool:
    if "individual" in seller_types and listing.listing_type in PHYSICAL_LISTING_TYPES:
        return True
    return "service" in seller_types and listing.listing_type in SERVICE_LISTING_TYPES


def filter_listings(listings: Iterable[Listing], filters: MarketplaceFilters) -> list[Listing]:
    result = list(listings)

    query = filters.query.strip().lower()
    if query:
        result = [item for item in result if _matches_query(item, query)]
    if filters.categories:
        result = [item for item in result if _matches_category(item, filters.categories)]
    if filters.price_min is not None or filters.price_max is not None:
        result = [
            item for item in result
            if _matches_price(item, filters.price_min, filters.price_max)
        ]
    if filters.location:
        result = [item for item in result if _matches_location(item, filters.location)]
    if filters.seller_types:
        result = [item for item in result if _matches_seller_type(item, filters.seller_types)]
    return result


@dataclass
class FilterOptions:
    categories: list[tuple[str, int]]   # (display name, count), by count descending
    locations: list[tuple[str, int]]
    price_min: int
    price_max: int


def filter_options(listings: Iterable[Listing]) -> FilterOptions:
    """Counts and price bounds used to populate the filter panel."""
    categories: Counter[str] = Counter()
    locations: Counter[str] = Counter()
    prices: list[float] = []

    for listing in listings:
        categories[listing.category.replace("_", " ")] += 1
        locations[REMOTE_LABEL if listing.is_remote else listing.location] += 1
        price = parse_price(listing.price)
        if price is not None:
            prices.append(price)

    return FilterOptions(
        categories=categories.most_common(),
        locations=locations.most_common(),
        price_min=math.floor(min(prices)) if prices else 0,
        price_max=math.ceil(max(prices)) if prices and max(prices) > 0 else 100,
    )
