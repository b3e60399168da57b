"""Durable storage of finished registrations."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cardquest.domain.models import UserRecord
from cardquest.errors import NotFoundError

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user records."""

    def create_user(self, user: UserRecord) -> UserRecord:
        """Insert a user; raise ConflictError on a unique violation."""

    def get_by_card_hash(self, card_hash: str) -> UserRecord | None:
        """Return the user registered with a card, if present."""

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with the given id, if present."""

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user with the given username, if present."""


@dataclass
class UserService:
    """Application service for user records."""

    repository: UserRepository

    async def finalize(
        self, card_hash: str, user_id: UUID, username: str, telegram_chat_id: int
    ) -> UserRecord:
        """Insert the durable record that completes a registration."""
        user = UserRecord(
            card_hash=card_hash,
            id=user_id,
            username=username,
            telegram_chat_id=telegram_chat_id,
        )
        created = await asyncio.to_thread(self.repository.create_user, user)
        logger.info("Registered user", extra={"user_id": str(created.id)})
        return created

    async def is_username_taken(self, username: str) -> bool:
        """Cheap pre-check; the store's unique constraint is authoritative."""
        existing = await asyncio.to_thread(self.repository.get_by_username, username)
        return existing is not None

    async def is_card_registered(self, card_hash: str) -> bool:
        """Return true when the card already completed registration."""
        existing = await asyncio.to_thread(self.repository.get_by_card_hash, card_hash)
        return existing is not None

    async def lookup_by_hash(self, card_hash: str) -> UserRecord:
        """Return the user for a card hash."""
        user = await asyncio.to_thread(self.repository.get_by_card_hash, card_hash)
        if user is None:
            raise NotFoundError(
                f"Could not find user with SHA256 card hash {card_hash}!"
            )
        return user

    async def lookup_by_id(self, user_id: UUID) -> UserRecord:
        """Return the user for an id."""
        user = await asyncio.to_thread(self.repository.get_by_id, user_id)
        if user is None:
            raise NotFoundError(f"Could not find user with id {user_id}!")
        return user
