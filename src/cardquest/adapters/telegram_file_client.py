"""Telegram file download client."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

import httpx

from cardquest.errors import UpstreamError

_API_ROOT = "https://api.telegram.org"


class TelegramFileClient(Protocol):
    """Interface for reading Telegram files and profile photos."""

    def stream_file(self, file_id: str) -> AsyncIterator[bytes]:
        """Yield the bytes of a Telegram file in chunks."""

    async def get_profile_photo_file_id(self, chat_id: int) -> str | None:
        """Return the file id of the chat's largest profile photo, if any."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Telegram file client using httpx."""

    bot_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def stream_file(self, file_id: str) -> AsyncIterator[bytes]:
        """Resolve a file via getFile and stream its content."""
        file_path = await self._get_file_path(file_id)
        download_url = f"{_API_ROOT}/file/bot{self.bot_token}/{file_path}"
        async with self.http_client.stream("GET", download_url, timeout=20) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                yield chunk

    async def get_profile_photo_file_id(self, chat_id: int) -> str | None:
        """Look up the chat photo via getChat."""
        url = f"{_API_ROOT}/bot{self.bot_token}/getChat"
        response = await self.http_client.get(
            url, params={"chat_id": chat_id}, timeout=10
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise UpstreamError("Telegram getChat failed")
        photo = payload["result"].get("photo")
        if not photo:
            return None
        return photo["big_file_id"]

    async def _get_file_path(self, file_id: str) -> str:
        get_file_url = f"{_API_ROOT}/bot{self.bot_token}/getFile"
        response = await self.http_client.get(
            get_file_url, params={"file_id": file_id}, timeout=10
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise UpstreamError("Telegram getFile failed")
        return payload["result"]["file_path"]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
