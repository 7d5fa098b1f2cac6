"""ListingStore: marketplace listings mirrored to the listings sync document.

Mutations follow the same three phases:
  1. resolve the acting user from IdentityStore (NotAuthenticatedError)
  2. resolve and authorize the target listing (ListingNotFoundError / NotListingOwnerError)
  3. apply, then push the full state to the sync layer

Failures are recorded in `error` / `failure` and reported as a falsy return
(None / False). create_listing is the exception: it re-raises after recording.
Reads are unrestricted.
"""

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from config.settings import settings
from src.pf_common.datetime_utils import now_ms
from src.pf_common.enums import SERVICE_LISTING_TYPES, ItemCondition, ListingStatus, ListingType
from src.pf_common.errors import (
    AppError,
    ListingNotFoundError,
    NotAuthenticatedError,
    NotListingOwnerError,
    SyncInitFailedError,
    ValidationFailedError,
)
from src.pf_common.id_generator import generate_id
from src.pf_identity.application.store import IdentityStore
from src.pf_identity.domain.models import UserProfile
from src.pf_listing.domain.images import (
    ImageSource,
    ImageUploaderProtocol,
    PlaceholderImageUploader,
    build_images,
    default_image,
    ensure_primary,
)
from src.pf_listing.domain.models import (
    FORM_FIELDS,
    Listing,
    ListingFormData,
    form_from_listing,
    parse_tags,
)
from src.pf_listing.domain.validation import first_step_with_errors, validate_all
from src.pf_sync.application.store import SyncedStore
from src.pf_sync.domain.models import SyncConfig
from src.pf_sync.domain.repository import DocumentBackendProtocol

logger = logging.getLogger(__name__)


def _on_listings_sync_error(error: SyncInitFailedError) -> None:
    logger.error("Listing sync initialization error: %s", error.message)


def default_listing_sync_config() -> SyncConfig:
    return SyncConfig(
        doc_id=settings.LISTINGS_DOC_ID,
        init_timeout_ms=settings.SYNC_INIT_TIMEOUT_MS,
        on_init_error=_on_listings_sync_error,
    )


_ENUM_FIELDS: dict[str, type[Enum]] = {
    "listing_type": ListingType,
    "condition": ItemCondition,
}


def _coerce_changes(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Form fields from a patch, enum values parsed. Raises ValidationFailedError."""
    changes: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for key, value in patch.items():
        if key not in FORM_FIELDS:
            continue
        if value is None:
            # Only condition may be cleared; other fields keep their value
            if key == "condition":
                changes[key] = None
            continue
        enum_type = _ENUM_FIELDS.get(key)
        if enum_type is None:
            changes[key] = value
            continue
        try:
            changes[key] = enum_type(value)
        except ValueError:
            errors[key] = f"Invalid {key.replace('_', ' ')}: {value!r}"
    if errors:
        raise ValidationFailedError(errors, first_step_with_errors(errors))
    return changes


def _condition_for(
    listing_type: ListingType, condition: ItemCondition | None
) -> ItemCondition | None:
    # Condition only describes physical items
    return None if listing_type in SERVICE_LISTING_TYPES else condition


class ListingStore(SyncedStore):
    def __init__(
        self,
        backend: DocumentBackendProtocol,
        identity: IdentityStore,
        config: SyncConfig | None = None,
        client_id: str | None = None,
        uploader: ImageUploaderProtocol | None = None,
    ) -> None:
        super().__init__(backend, config or default_listing_sync_config(), client_id)
        self._identity = identity
        self._uploader: ImageUploaderProtocol = uploader or PlaceholderImageUploader()

        self.listings: list[Listing] = []
        self.is_loading = False
        self.error: str | None = None
        self.failure: AppError | None = None

    # ------------------------------------------------------------------
    # Sync document
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        return {"listings": [listing.to_dict() for listing in self.listings]}

    def apply_document(self, state: dict[str, Any]) -> None:
        listings = [Listing.from_dict(item) for item in state.get("listings", [])]
        for listing in listings:
            ensure_primary(listing.images)
        self.listings = listings

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def get_listing_by_id(self, listing_id: str) -> Listing | None:
        return next((item for item in self.listings if item.id == listing_id), None)

    def get_listings_by_seller(self, seller_id: str) -> list[Listing]:
        return [item for item in self.listings if item.seller_id == seller_id]

    def get_active_listings(self) -> list[Listing]:
        return [item for item in self.listings if item.status == ListingStatus.ACTIVE]

    def is_owner(self, listing: Listing) -> bool:
        user = self._identity.get_current_user()
        return user is not None and user.id == listing.seller_id

    # ------------------------------------------------------------------
    # Phase helpers
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        self.is_loading = True
        self.error = None
        self.failure = None

    def _fail(self, action: str, exc: AppError) -> None:
        logger.warning("%s failed: %s", action, exc.message)
        self.error = exc.message
        self.failure = exc
        self.is_loading = False

    def _require_user(self, action: str) -> UserProfile:
        user = self._identity.get_current_user()
        if user is None:
            raise NotAuthenticatedError(action)
        return user

    def _authorize(self, listing_id: str, action: str, verb: str) -> Listing:
        user = self._require_user(action)
        listing = self.get_listing_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError()
        if listing.seller_id != user.id:
            raise NotListingOwnerError(verb)
        return listing

    def _replace(self, updated: Listing) -> None:
        self.listings = [updated if item.id == updated.id else item for item in self.listings]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_listing(
        self, form: ListingFormData, images: Sequence[ImageSource] = ()
    ) -> Listing:
        """Create a listing owned by the current user.

        Without images a single primary placeholder is synthesized.
        Raises NotAuthenticatedError when nobody is logged in.
        """
        self._begin()
        try:
            user = self._require_user("create a listing")
        except AppError as exc:
            self._fail("Create listing", exc)
            raise

        if images:
            stored = await build_images(images, self._uploader, first_is_primary=True)
        else:
            stored = [default_image()]

        now = now_ms()
        listing = Listing(
            id=generate_id(),
            created_at=now,
            updated_at=now,
            seller_id=user.id,
            seller_name=user.name,
            title=form.title,
            short_description=form.short_description,
            detailed_description=form.detailed_description,
            listing_type=form.listing_type,
            category=form.category,
            price=form.price,
            condition=_condition_for(form.listing_type, form.condition),
            location=form.location,
            is_remote=form.is_remote,
            contact_info=form.contact_info,
            tags=parse_tags(form.tags),
            images=stored,
            status=ListingStatus.ACTIVE,
        )
        self.listings = [*self.listings, listing]
        self.is_loading = False
        logger.info("Created listing %s for seller %s", listing.id, user.id)
        await self.emit()
        return listing

    async def update_listing(
        self,
        listing_id: str,
        patch: Mapping[str, Any],
        new_images: Sequence[ImageSource] = (),
    ) -> Listing | None:
        """Merge form fields into a listing and append images. None on failure.

        The merged listing must pass the same field rules as a new one.
        """
        self._begin()
        rejected = set(patch) - FORM_FIELDS
        if rejected:
            logger.warning("Ignoring non-form listing fields: %s", sorted(rejected))
        try:
            listing = self._authorize(listing_id, "update a listing", "update")
            changes = _coerce_changes(patch)
            tags = parse_tags(changes.pop("tags")) if "tags" in changes else list(listing.tags)
            merged = dataclasses.replace(listing, **changes, tags=tags)
            errors = validate_all(form_from_listing(merged))
            if errors:
                raise ValidationFailedError(errors, first_step_with_errors(errors))
        except AppError as exc:
            self._fail("Update listing", exc)
            return None

        images = [dataclasses.replace(img) for img in listing.images]
        if new_images:
            images += await build_images(new_images, self._uploader, first_is_primary=False)
        ensure_primary(images)

        updated = dataclasses.replace(
            merged,
            condition=_condition_for(merged.listing_type, merged.condition),
            images=images,
            updated_at=now_ms(),
        )
        self._replace(updated)
        self.is_loading = False
        logger.info("Updated listing %s", listing_id)
        await self.emit()
        return updated

    async def delete_listing(self, listing_id: str) -> bool:
        self._begin()
        try:
            self._authorize(listing_id, "delete a listing", "delete")
        except AppError as exc:
            self._fail("Delete listing", exc)
            return False

        self.listings = [item for item in self.listings if item.id != listing_id]
        self.is_loading = False
        logger.info("Deleted listing %s", listing_id)
        await self.emit()
        return True

    async def set_listing_status(self, listing_id: str, status: ListingStatus | str) -> bool:
        self._begin()
        try:
            listing = self._authorize(listing_id, "update a listing status", "update")
            try:
                new_status = ListingStatus(status)
            except ValueError:
                raise ValidationFailedError({"status": f"Invalid status: {status!r}"}) from None
        except AppError as exc:
            self._fail("Set listing status", exc)
            return False

        self._replace(dataclasses.replace(listing, status=new_status, updated_at=now_ms()))
        self.is_loading = False
        logger.info("Updated listing %s status to %s", listing_id, new_status.value)
        await self.emit()
        return True
