"""Image sources and their resolution to stored ListingImage descriptors.

An image input is one of two explicit variants:
  UploadedFile: raw upload, handed to an ImageUploaderProtocol for a URL
  DirectURL   : an already-hosted image, used as-is

The bundled PlaceholderImageUploader does no real storage: it encodes the
file name into a placehold.co URL.
"""

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

from src.pf_common.id_generator import generate_id
from src.pf_listing.domain.models import ListingImage

PLACEHOLDER_BASE = "https://placehold.co/300x200?text="
_PLACEHOLDER_GAMES = ("Zelda", "Mario", "Minecraft", "Fortnite", "Pokemon", "FIFA")


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str = "image/jpeg"
    content: bytes = b""


@dataclass(frozen=True)
class DirectURL:
    url: str


ImageSource = UploadedFile | DirectURL


class ImageUploaderProtocol(Protocol):
    async def upload(self, file: UploadedFile) -> str: ...


class PlaceholderImageUploader:
    async def upload(self, file: UploadedFile) -> str:
        return f"{PLACEHOLDER_BASE}{quote(file.filename, safe='')}"


async def resolve_image_url(source: ImageSource, uploader: ImageUploaderProtocol) -> str:
    if isinstance(source, DirectURL):
        return source.url
    return await uploader.upload(source)


async def build_images(
    sources: Sequence[ImageSource],
    uploader: ImageUploaderProtocol,
    first_is_primary: bool,
) -> list[ListingImage]:
    images: list[ListingImage] = []
    for index, source in enumerate(sources):
        url = await resolve_image_url(source, uploader)
        images.append(
            ListingImage(id=generate_id(), url=url, is_primary=first_is_primary and index == 0)
        )
    return images


def default_image() -> ListingImage:
    """Placeholder used when a listing is created without images."""
    game = random.choice(_PLACEHOLDER_GAMES)
    return ListingImage(id=generate_id(), url=f"{PLACEHOLDER_BASE}{quote(game)}", is_primary=True)


def ensure_primary(images: list[ListingImage]) -> list[ListingImage]:
    """Repair the one-primary invariant in place: keep the first primary, else promote images[0]."""
    if not images:
        return images
    seen_primary = False
    for img in images:
        if img.is_primary and not seen_primary:
            seen_primary = True
        elif img.is_primary:
            img.is_primary = False
    if not seen_primary:
        images[0].is_primary = True
    return images
