"""
Listing service: owner-scoped CRUD over car listings and their images.

Images live in a blob store, records in the listing store, and nothing makes
the two agree transactionally. The ordering rules below keep the record from
ever pointing at a deleted blob:

- new blobs are written before the record that references them;
- old blobs are deleted only after the record stops referencing them;
- blob deletion is best-effort and never fails the request.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from carlot.core.errors import InvalidArgument, NotFound
from carlot.core.listing_store import CAR_NOT_FOUND, ListingStore
from carlot.core.security import Identity
from carlot.models.requests import CarPatch, CarRead
from carlot.shared import Logger
from carlot.shared.config import Listings
from carlot.storage import BlobStore

logger = Logger(__name__).get_logger()


@dataclass(frozen=True)
class Attachment:
    """An uploaded image, read into memory."""

    filename: str
    data: bytes


def parse_tags(tags: str | Sequence[str] | None) -> list[str]:
    """Split a comma-delimited tag string, trimming blanks away."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [tag.strip() for tag in tags if tag and tag.strip()]


def parse_car_id(car_id: str | int) -> int:
    try:
        return int(car_id)
    except (TypeError, ValueError) as e:
        raise NotFound(CAR_NOT_FOUND) from e


def require_text(name: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise InvalidArgument(f"{name} is required")
    return value


class ListingService:
    def __init__(self, store: ListingStore, blobs: BlobStore, settings: Listings):
        self.store = store
        self.blobs = blobs
        self.settings = settings

    def _check_attachment_count(self, attachments: Sequence):
        if len(attachments) > self.settings.max_images:
            raise InvalidArgument(
                f"Too many images: at most {self.settings.max_images} allowed"
            )

    def check_uploads(self, uploads: Sequence[tuple[str, int | None]]):
        """
        Reject an upload batch from its (filename, declared size) pairs,
        before any image bytes are read into memory.
        """
        self._check_attachment_count(uploads)
        for filename, size in uploads:
            if size is not None:
                self.blobs.check_size(filename, size)

    def _store_attachments(self, attachments: Sequence[Attachment]) -> list[str]:
        locators: list[str] = []
        try:
            for attachment in attachments:
                locators.append(self.blobs.store(attachment.data, attachment.filename))
        except Exception:
            # Nothing references these yet
            self.blobs.delete_all(locators)
            raise
        return locators

    def create(
        self,
        identity: Identity,
        title: str | None,
        description: str | None,
        tags: str | Sequence[str] | None,
        attachments: Sequence[Attachment],
    ) -> CarRead:
        title = require_text("Title", title)
        description = require_text("Description", description)
        if self.settings.require_images and not attachments:
            raise InvalidArgument("No images uploaded")
        self._check_attachment_count(attachments)

        locators = self._store_attachments(attachments)
        try:
            return self.store.create(
                owner_id=identity.user_id,
                title=title,
                description=description,
                tags=parse_tags(tags),
                images=locators,
            )
        except Exception:
            logger.error("Create failed, discarding %d new image(s)", len(locators))
            self.blobs.delete_all(locators)
            raise

    def list_all(self, identity: Identity) -> list[CarRead]:
        return self.store.list_all(identity.user_id)

    def get(self, identity: Identity, car_id: str | int) -> CarRead:
        return self.store.get_by_id(identity.user_id, parse_car_id(car_id))

    def search(self, identity: Identity, keyword: str | None) -> list[CarRead]:
        if keyword is None or not keyword.strip():
            raise InvalidArgument("Search keyword is required")
        return self.store.search_by_title(identity.user_id, keyword)

    def update(
        self,
        identity: Identity,
        car_id: str | int,
        title: str | None,
        description: str | None,
        tags: str | Sequence[str] | None,
        attachments: Sequence[Attachment],
    ) -> CarRead:
        car_id = parse_car_id(car_id)
        if title is not None:
            require_text("Title", title)
        if description is not None:
            require_text("Description", description)
        self._check_attachment_count(attachments)

        patch = CarPatch(title=title, description=description, tags=parse_tags(tags))
        if not attachments:
            _, car = self.store.update_by_id(identity.user_id, car_id, patch)
            return car

        # Don't write blobs for a listing the caller cannot see
        self.store.get_by_id(identity.user_id, car_id)

        patch.images = self._store_attachments(attachments)
        try:
            previous_images, car = self.store.update_by_id(
                identity.user_id, car_id, patch
            )
        except Exception:
            logger.warning(
                "Update of car %s failed, discarding %d new image(s)",
                car_id,
                len(patch.images),
            )
            self.blobs.delete_all(patch.images)
            raise

        # The record is committed; the old images are now unreferenced
        replaced = [locator for locator in previous_images if locator not in car.images]
        removed = self.blobs.delete_all(replaced)
        logger.info(
            "Replaced images of car %s: %d removed of %d", car_id, removed, len(replaced)
        )
        return car

    def delete(self, identity: Identity, car_id: str | int) -> CarRead:
        car = self.store.delete_by_id(identity.user_id, parse_car_id(car_id))
        removed = self.blobs.delete_all(car.images)
        if removed != len(car.images):
            logger.warning(
                "Car %s deleted but only %d of %d image(s) removed",
                car.id,
                removed,
                len(car.images),
            )
        return car
