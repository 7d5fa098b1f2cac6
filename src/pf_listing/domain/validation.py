"""Listing field validation, grouped by creation-form step.

Steps:
  1. listing type + category
  2. title + short/detailed description
  3. price + condition
  4. location/remote + contact info
  5. tags + optional image URL

Pure functions over ListingFormData. The creation wizard, the HTTP layer
and ListingStore.update_listing all validate through validate_all().
"""

from src.pf_common.enums import PHYSICAL_LISTING_TYPES, categories_for
from src.pf_listing.domain.models import ListingFormData

TOTAL_STEPS = 5
SHORT_DESCRIPTION_MAX = 150

_STEP_FIELDS: dict[int, tuple[str, ...]] = {
    1: ("listing_type", "category"),
    2: ("title", "short_description", "detailed_description"),
    3: ("price", "condition"),
    4: ("location", "is_remote", "contact_info"),
    5: ("tags", "image_url"),
}


def fields_for_step(step: int) -> tuple[str, ...]:
    return _STEP_FIELDS.get(step, ())


def validate_step(data: ListingFormData, step: int) -> dict[str, str]:
    """Field errors for one step; empty dict when the step is valid."""
    errors: dict[str, str] = {}
    if step == 1:
        if not data.listing_type:
            errors["listing_type"] = "Please select a listing type"
        elif not data.category or data.category not in categories_for(data.listing_type):
            errors["category"] = "Please select a category"
    elif step == 2:
        if not data.title.strip():
            errors["title"] = "Please enter a title"
        if not data.short_description.strip():
            errors["short_description"] = "Please enter a short description"
        elif len(data.short_description) > SHORT_DESCRIPTION_MAX:
            errors["short_description"] = (
                f"Short description must be at most {SHORT_DESCRIPTION_MAX} characters"
            )
    elif step == 3:
        if not data.price.strip():
            errors["price"] = "Please enter a price or rate"
        if data.listing_type in PHYSICAL_LISTING_TYPES and not data.condition:
            errors["condition"] = "Please select a condition"
    elif step == 4:
        if not data.location.strip() and not data.is_remote:
            errors["location"] = "Please enter a location or select remote"
        if not data.contact_info.strip():
            errors["contact_info"] = "Please enter contact information"
    return errors


def validate_all(data: ListingFormData) -> dict[str, str]:
    errors: dict[str, str] = {}
    for step in range(1, TOTAL_STEPS + 1):
        errors.update(validate_step(data, step))
    return errors


def first_step_with_errors(errors: dict[str, str]) -> int | None:
    for step in range(1, TOTAL_STEPS + 1):
        if any(name in errors for name in fields_for_step(step)):
            return step
    return None
