"""Registration dialogue states and inbound events."""

from dataclasses import dataclass, field
from uuid import UUID

from cardquest.domain.models import PhotoVariant
from cardquest.telegram_commands import Command


@dataclass(frozen=True)
class StartRegister:
    """Waiting for /register."""


@dataclass(frozen=True)
class GetUsername:
    """A staging record was claimed; waiting for a username."""

    id: UUID
    card_hash: str


@dataclass(frozen=True)
class GetAvatar:
    """Username accepted; waiting for a photo or the profile photo button."""

    username: str
    id: UUID
    card_hash: str


DialogueState = StartRegister | GetUsername | GetAvatar


@dataclass(frozen=True)
class CommandEvent:
    command: Command


@dataclass(frozen=True)
class TextEvent:
    text: str


@dataclass(frozen=True)
class PhotoEvent:
    photos: list[PhotoVariant] = field(default_factory=list)


@dataclass(frozen=True)
class AvatarButtonEvent:
    """The "use my profile photo" button was pressed."""


DialogueEvent = CommandEvent | TextEvent | PhotoEvent | AvatarButtonEvent


def state_to_dict(state: DialogueState) -> dict[str, object]:
    """Serialize a state for an external session store."""
    if isinstance(state, GetUsername):
        return {
            "state": "GetUsername",
            "id": str(state.id),
            "card_hash": state.card_hash,
        }
    if isinstance(state, GetAvatar):
        return {
            "state": "GetAvatar",
            "username": state.username,
            "id": str(state.id),
            "card_hash": state.card_hash,
        }
    return {"state": "StartRegister"}


def state_from_dict(data: dict[str, object]) -> DialogueState:
    """Rebuild a state serialized by ``state_to_dict``."""
    name = data.get("state")
    if name == "GetUsername":
        return GetUsername(id=UUID(str(data["id"])), card_hash=str(data["card_hash"]))
    if name == "GetAvatar":
        return GetAvatar(
            username=str(data["username"]),
            id=UUID(str(data["id"])),
            card_hash=str(data["card_hash"]),
        )
    return StartRegister()
