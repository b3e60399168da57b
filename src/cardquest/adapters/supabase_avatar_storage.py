"""Supabase Storage avatar backend."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass

from storage3.utils import StorageException
from supabase import Client

from cardquest.services.avatars import AvatarStorage, StorageBackendError

_NOT_FOUND_STATUSES = {404, "404"}


@dataclass
class SupabaseAvatarStorage(AvatarStorage):
    """Stores avatars as objects in a Supabase Storage bucket.

    The stream is buffered and uploaded in one request, so the object only
    appears once the whole image has arrived.
    """

    client: Client
    bucket: str

    async def write(self, key: str, chunks: AsyncIterator[bytes]) -> None:
        """Buffer the stream and upload it with upsert."""
        buffer = bytearray()
        async for chunk in chunks:
            buffer.extend(chunk)
        await self._upload(key, bytes(buffer))

    async def promote(self, source_key: str, key: str) -> None:
        """Copy the pending object over the target with upsert, then remove it."""
        content = await self.read(source_key)
        if content is None:
            raise StorageBackendError(f"Pending avatar {source_key} is missing")
        await self._upload(key, content)
        await self.delete(source_key)

    async def read(self, key: str) -> bytes | None:
        """Download an object; only a missing object is reported as None."""
        try:
            return await asyncio.to_thread(
                self.client.storage.from_(self.bucket).download, key
            )
        except StorageException as exc:
            if _is_not_found(exc):
                return None
            raise StorageBackendError(str(exc)) from exc

    async def delete(self, key: str) -> None:
        """Remove an object from the bucket."""
        try:
            await asyncio.to_thread(
                self.client.storage.from_(self.bucket).remove, [key]
            )
        except StorageException as exc:
            raise StorageBackendError(str(exc)) from exc

    async def _upload(self, key: str, content: bytes) -> None:
        try:
            await asyncio.to_thread(
                self.client.storage.from_(self.bucket).upload,
                key,
                content,
                {"content-type": "image/png", "upsert": "true"},
            )
        except StorageException as exc:
            raise StorageBackendError(str(exc)) from exc


def _is_not_found(exc: StorageException) -> bool:
    if getattr(exc, "status", None) in _NOT_FOUND_STATUSES:
        return True
    if getattr(exc, "code", None) == "not_found":
        return True
    return "not found" in str(exc).lower()
