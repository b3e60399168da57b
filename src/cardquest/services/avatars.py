"""Avatar ingestion from Telegram uploads and profile photos."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import httpx

from cardquest.adapters.telegram_file_client import TelegramFileClient
from cardquest.domain.models import PhotoVariant, avatar_key, pending_avatar_key
from cardquest.errors import AvatarWriteError, NotFoundError, UpstreamError

logger = logging.getLogger(__name__)


class AvatarStorage(Protocol):
    """Blob storage for avatar images.

    ``write`` and ``promote`` must be all-or-nothing: a reader never observes
    a partially written object, and a failed call leaves any previous object
    in place.
    """

    async def write(self, key: str, chunks: AsyncIterator[bytes]) -> None:
        """Create or replace the object at key from a byte stream."""

    async def promote(self, source_key: str, key: str) -> None:
        """Move the object at source_key onto key, replacing it."""

    async def read(self, key: str) -> bytes | None:
        """Return the object bytes, or None when missing."""

    async def delete(self, key: str) -> None:
        """Remove the object if present."""


class StorageBackendError(Exception):
    """Raised by storage backends for failures other than a missing object."""


@dataclass
class AvatarService:
    """Stores a registering player's avatar next to their pending record.

    Ingested images land under a per-registration pending key and are only
    promoted to ``<card_hash>.png`` once the user record exists, so a
    registration that loses a race never touches the published avatar.
    """

    file_client: TelegramFileClient
    storage: AvatarStorage

    async def ingest_upload(
        self, card_hash: str, registration_id: UUID, photos: list[PhotoVariant]
    ) -> None:
        """Store the highest resolution of an uploaded photo."""
        if not photos:
            raise NotFoundError("Image not provided!")
        photo = select_largest_photo(photos)
        await self._transfer(
            pending_avatar_key(card_hash, registration_id), photo.file_id
        )

    async def ingest_profile_photo(
        self, card_hash: str, registration_id: UUID, chat_id: int
    ) -> None:
        """Copy the chat's current Telegram profile photo into storage."""
        try:
            file_id = await self.file_client.get_profile_photo_file_id(chat_id)
        except httpx.HTTPError as exc:
            raise UpstreamError("Could not look up the profile photo") from exc
        if file_id is None:
            logger.warning("User has no profile picture", extra={"chat_id": chat_id})
            raise NotFoundError(
                "You have no profile photo. Please send a photo instead."
            )
        await self._transfer(pending_avatar_key(card_hash, registration_id), file_id)

    async def commit(self, card_hash: str, registration_id: UUID) -> None:
        """Publish the pending avatar of a finished registration."""
        try:
            await self.storage.promote(
                pending_avatar_key(card_hash, registration_id), avatar_key(card_hash)
            )
        except (OSError, StorageBackendError) as exc:
            raise AvatarWriteError(f"Could not publish avatar {card_hash}") from exc
        logger.info("Published avatar", extra={"key": avatar_key(card_hash)})

    async def read(self, card_hash: str) -> bytes:
        """Return stored avatar bytes."""
        try:
            content = await self.storage.read(avatar_key(card_hash))
        except (OSError, StorageBackendError) as exc:
            raise UpstreamError("Avatar storage is unavailable") from exc
        if content is None:
            raise NotFoundError(f"No avatar stored for card hash {card_hash}")
        return content

    async def discard(self, card_hash: str, registration_id: UUID) -> None:
        """Remove the pending avatar of a registration that did not finish."""
        try:
            await self.storage.delete(pending_avatar_key(card_hash, registration_id))
        except (OSError, StorageBackendError):
            logger.exception("Failed to remove orphaned avatar")

    async def _transfer(self, key: str, file_id: str) -> None:
        try:
            await self.storage.write(key, self.file_client.stream_file(file_id))
        except httpx.HTTPError as exc:
            raise UpstreamError("Could not download the photo from Telegram") from exc
        except (OSError, StorageBackendError) as exc:
            raise AvatarWriteError(f"Could not store avatar {key}") from exc
        logger.info("Stored pending avatar", extra={"key": key})


def select_largest_photo(photos: list[PhotoVariant]) -> PhotoVariant:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))
