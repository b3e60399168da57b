"""Filesystem avatar storage."""

import asyncio
import os
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from cardquest.services.avatars import AvatarStorage


@dataclass
class LocalAvatarStorage(AvatarStorage):
    """Stores avatars as files in a single directory.

    Writes go to a temporary file next to the destination and are renamed
    into place only after the whole stream has been flushed to disk.
    """

    directory: Path

    async def write(self, key: str, chunks: AsyncIterator[bytes]) -> None:
        """Stream chunks into a temp file, then atomically replace the target."""
        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.")
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                async for chunk in chunks:
                    await asyncio.to_thread(handle.write, chunk)
                await asyncio.to_thread(_flush, handle)
            await asyncio.to_thread(os.replace, temp_path, self.directory / key)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    async def promote(self, source_key: str, key: str) -> None:
        """Rename the source file onto the target in one step."""
        await asyncio.to_thread(
            os.replace, self.directory / source_key, self.directory / key
        )

    async def read(self, key: str) -> bytes | None:
        """Return file bytes, or None when the file does not exist."""
        try:
            return await asyncio.to_thread((self.directory / key).read_bytes)
        except FileNotFoundError:
            return None

    async def delete(self, key: str) -> None:
        """Remove the file if it exists."""
        await asyncio.to_thread((self.directory / key).unlink, missing_ok=True)


def _flush(handle) -> None:  # type: ignore[no-untyped-def]
    handle.flush()
    os.fsync(handle.fileno())
