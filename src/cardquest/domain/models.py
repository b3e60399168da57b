"""Domain models for card registration."""

from dataclasses import dataclass
from uuid import UUID

CARD_HASH_LENGTH = 64
TOKEN_LENGTH = 8


@dataclass(frozen=True)
class StagingRegistration:
    """A validated card waiting to be claimed in the chat."""

    card_hash: str
    id: UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a finished registration stored in the database."""

    card_hash: str
    id: UUID
    username: str
    telegram_chat_id: int


@dataclass(frozen=True)
class PhotoVariant:
    """One resolution of an inbound photo."""

    file_id: str
    width: int
    height: int


def avatar_key(card_hash: str) -> str:
    """Return the storage key of the avatar for a card."""
    return f"{card_hash}.png"


def pending_avatar_key(card_hash: str, registration_id: UUID) -> str:
    """Return the key an avatar is held under until its record exists."""
    return f"{card_hash}.{registration_id}.pending.png"
