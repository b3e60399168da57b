"""Registration dialogue: the per-chat state machine behind /register."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cardquest.domain.dialogue import (
    AvatarButtonEvent,
    CommandEvent,
    DialogueEvent,
    GetAvatar,
    GetUsername,
    PhotoEvent,
    StartRegister,
    TextEvent,
)
from cardquest.domain.models import (
    TOKEN_LENGTH,
    PhotoVariant,
    StagingRegistration,
    UserRecord,
)
from cardquest.errors import (
    AvatarWriteError,
    ConflictError,
    NotFoundError,
    UpstreamError,
)
from cardquest.services.sessions import SessionStore
from cardquest.telegram_commands import Cancel, Help, Register, Start, help_text

logger = logging.getLogger(__name__)

AVATAR_CALLBACK_DATA = "avatar:profile"

START_TEXT = (
    "This bot registers you for the quest.\n"
    "Start with /register <token>, replacing <token> with your registration token."
)
GENERIC_FAILURE_TEXT = (
    "Something went wrong while saving your registration. Please try again."
)
ALREADY_REGISTERED_TEXT = "This card is already registered."
AVATAR_NOT_SAVED_TEXT = "Your avatar could not be saved."


class Stager(Protocol):
    async def consume(self, token: str) -> StagingRegistration:
        """Claim a staging record by token."""


class UserRegistry(Protocol):
    async def is_username_taken(self, username: str) -> bool:
        """Return true when the username is already used."""

    async def is_card_registered(self, card_hash: str) -> bool:
        """Return true when a user already exists for the card."""

    async def finalize(
        self, card_hash: str, user_id: UUID, username: str, telegram_chat_id: int
    ) -> UserRecord:
        """Insert the durable user record."""


class AvatarIngestion(Protocol):
    async def ingest_upload(
        self, card_hash: str, registration_id: UUID, photos: list[PhotoVariant]
    ) -> None:
        """Hold an uploaded photo as the pending avatar."""

    async def ingest_profile_photo(
        self, card_hash: str, registration_id: UUID, chat_id: int
    ) -> None:
        """Hold the chat's profile photo as the pending avatar."""

    async def commit(self, card_hash: str, registration_id: UUID) -> None:
        """Publish the pending avatar under the card's key."""

    async def discard(self, card_hash: str, registration_id: UUID) -> None:
        """Remove the pending avatar of a registration that did not finish."""


@dataclass(frozen=True)
class SessionPrompt:
    """Represents the next user-facing prompt."""

    text: str
    reply_markup: dict | None = None


@dataclass
class RegistrationDialogue:
    """State machine guiding a chat from a token to a finished registration.

    Each inbound event is matched against the chat's current state; an
    event with no matching transition returns ``None`` and leaves the state
    untouched. Events for one chat are expected to arrive one at a time.
    """

    stager: Stager
    users: UserRegistry
    avatars: AvatarIngestion
    sessions: SessionStore

    async def handle(self, chat_id: int, event: DialogueEvent) -> SessionPrompt | None:
        """Apply an event to the chat's dialogue and return the reply."""
        if isinstance(event, CommandEvent):
            if isinstance(event.command, Help):
                return SessionPrompt(text=help_text())
            if isinstance(event.command, Cancel):
                await self.sessions.delete(chat_id)
                logger.debug("Registration cancelled", extra={"chat_id": chat_id})
                return SessionPrompt(text="Registration cancelled.")

        state = await self.sessions.get_or_default(chat_id)
        if isinstance(state, StartRegister) and isinstance(event, CommandEvent):
            if isinstance(event.command, Start):
                return SessionPrompt(text=START_TEXT)
            if isinstance(event.command, Register):
                return await self._register(chat_id, event.command.token)
        if isinstance(state, GetUsername):
            if isinstance(event, TextEvent):
                return await self._choose_username(chat_id, state, event.text)
            if isinstance(event, PhotoEvent):
                return SessionPrompt(text="Enter your username.")
        if isinstance(state, GetAvatar):
            if isinstance(event, PhotoEvent):
                photos = event.photos
                return await self._finish(
                    chat_id,
                    state,
                    lambda: self.avatars.ingest_upload(
                        state.card_hash, state.id, photos
                    ),
                )
            if isinstance(event, AvatarButtonEvent):
                return await self._finish(
                    chat_id,
                    state,
                    lambda: self.avatars.ingest_profile_photo(
                        state.card_hash, state.id, chat_id
                    ),
                )
            if isinstance(event, TextEvent):
                return SessionPrompt(
                    text="Send a photo or press the button below!",
                    reply_markup=avatar_keyboard(),
                )
        return None

    async def _register(self, chat_id: int, token: str) -> SessionPrompt:
        if len(token) != TOKEN_LENGTH:
            return SessionPrompt(text="Invalid registration token!")
        logger.info("Performing registration", extra={"chat_id": chat_id})
        try:
            stage = await self.stager.consume(token)
        except NotFoundError:
            return SessionPrompt(text="Unknown registration token!")
        if await self.users.is_card_registered(stage.card_hash):
            return SessionPrompt(text=ALREADY_REGISTERED_TEXT)
        await self.sessions.put(
            chat_id, GetUsername(id=stage.id, card_hash=stage.card_hash)
        )
        return SessionPrompt(
            text="You are starting the quest registration.\n"
            "Enter your preferred username."
        )

    async def _choose_username(
        self, chat_id: int, state: GetUsername, text: str
    ) -> SessionPrompt:
        username = text.strip()
        if not username:
            return SessionPrompt(text="Enter your username.")
        if await self.users.is_username_taken(username):
            return _username_taken(username)
        await self.sessions.put(
            chat_id,
            GetAvatar(username=username, id=state.id, card_hash=state.card_hash),
        )
        return SessionPrompt(
            text=f"You chose the username {username}.\n"
            "Now send a picture for your profile (or press the button below to use "
            "your current profile photo).",
            reply_markup=avatar_keyboard(),
        )

    async def _finish(
        self,
        chat_id: int,
        state: GetAvatar,
        ingest: Callable[[], Awaitable[None]],
    ) -> SessionPrompt:
        if await self.users.is_card_registered(state.card_hash):
            await self.sessions.delete(chat_id)
            return SessionPrompt(text=ALREADY_REGISTERED_TEXT)
        try:
            await ingest()
        except NotFoundError as exc:
            return SessionPrompt(text=exc.message, reply_markup=avatar_keyboard())
        except (UpstreamError, AvatarWriteError):
            logger.exception("Avatar ingestion failed", extra={"chat_id": chat_id})
            return SessionPrompt(
                text=GENERIC_FAILURE_TEXT, reply_markup=avatar_keyboard()
            )

        try:
            await self.users.finalize(
                card_hash=state.card_hash,
                user_id=state.id,
                username=state.username,
                telegram_chat_id=chat_id,
            )
        except ConflictError as exc:
            logger.warning(
                "Registration conflict", extra={"chat_id": chat_id, "field": exc.field}
            )
            await self.avatars.discard(state.card_hash, state.id)
            if exc.field == "username":
                await self.sessions.put(
                    chat_id, GetUsername(id=state.id, card_hash=state.card_hash)
                )
                return _username_taken(state.username)
            await self.sessions.delete(chat_id)
            return SessionPrompt(text=ALREADY_REGISTERED_TEXT)
        except UpstreamError:
            await self.avatars.discard(state.card_hash, state.id)
            logger.exception(
                "Failed to finalize registration", extra={"chat_id": chat_id}
            )
            return SessionPrompt(
                text=GENERIC_FAILURE_TEXT, reply_markup=avatar_keyboard()
            )

        await self.sessions.delete(chat_id)
        logger.info("Registration completed", extra={"chat_id": chat_id})
        completed = f"Registration completed successfully!\nUsername: {state.username}"
        try:
            await self.avatars.commit(state.card_hash, state.id)
        except AvatarWriteError:
            logger.exception("Failed to publish avatar", extra={"chat_id": chat_id})
            return SessionPrompt(text=f"{completed}\n{AVATAR_NOT_SAVED_TEXT}")
        return SessionPrompt(text=completed)


def _username_taken(username: str) -> SessionPrompt:
    return SessionPrompt(
        text=f"User with username {username} already exists!\n"
        "Please choose another username."
    )


def avatar_keyboard() -> dict:
    """Inline keyboard offering the current Telegram profile photo."""
    return {
        "inline_keyboard": [
            [
                {
                    "text": "Use my Telegram profile photo",
                    "callback_data": AVATAR_CALLBACK_DATA,
                }
            ]
        ]
    }
