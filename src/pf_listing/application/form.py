"""Multi-step listing creation form.

Field rules live in pf_listing.domain.validation; ListingCreationForm adds
the wizard navigation on top of them.
"""

import logging
from dataclasses import dataclass, field

from src.pf_common.enums import SERVICE_LISTING_TYPES, ListingType
from src.pf_common.errors import ValidationFailedError
from src.pf_listing.application.store import ListingStore
from src.pf_listing.domain.images import DirectURL, ImageSource
from src.pf_listing.domain.models import Listing, ListingFormData
from src.pf_listing.domain.validation import (
    TOTAL_STEPS,
    first_step_with_errors,
    validate_all,
    validate_step,
)

logger = logging.getLogger(__name__)


def price_prompt(listing_type: ListingType) -> str:
    if listing_type in SERVICE_LISTING_TYPES:
        return "What is your rate for this service?"
    if listing_type == ListingType.SELL:
        return "What is your asking price?"
    if listing_type == ListingType.BUY:
        return "What is your budget?"
    return "What is the value of your item?"


@dataclass
class ListingCreationForm:
    """Wizard state for creating one listing."""

    data: ListingFormData = field(default_factory=ListingFormData)
    image_url: str = ""
    current_step: int = 1
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def progress_percentage(self) -> float:
        return self.current_step / TOTAL_STEPS * 100

    @property
    def is_final_step(self) -> bool:
        return self.current_step == TOTAL_STEPS

    def set_field(self, name: str, value: object) -> None:
        """Update one form field and clear its error."""
        if name == "image_url":
            self.image_url = str(value)
        elif name in ListingFormData.__dataclass_fields__:
            setattr(self.data, name, value)
        else:
            raise ValueError(f"Unknown form field: {name}")
        self.errors.pop(name, None)

    def next_step(self) -> bool:
        """Advance if the current step validates; otherwise record its errors."""
        step_errors = validate_step(self.data, self.current_step)
        if step_errors:
            self.errors = step_errors
            return False
        self.current_step = min(self.current_step + 1, TOTAL_STEPS)
        return True

    def prev_step(self) -> None:
        self.current_step = max(self.current_step - 1, 1)

    def image_sources(self) -> list[ImageSource]:
        url = self.image_url.strip()
        return [DirectURL(url)] if url else []

    async def submit(self, store: ListingStore) -> Listing | None:
        """Validate every step and create the listing.

        Before the final step this behaves like next_step() and returns None.
        Raises ValidationFailedError after moving to the earliest failing step.
        """
        if not self.is_final_step:
            self.next_step()
            return None

        errors = validate_all(self.data)
        if errors:
            self.errors = errors
            self.current_step = first_step_with_errors(errors) or self.current_step
            raise ValidationFailedError(errors, self.current_step)

        try:
            return await store.create_listing(self.data, self.image_sources())
        except Exception:
            self.errors = {"general": store.error or "Failed to create listing. Please try again."}
            logger.warning("Listing submission failed: %s", self.errors["general"])
            raise
