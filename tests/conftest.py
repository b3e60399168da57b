"""Shared test fixtures."""

import threading
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from uuid import UUID

import pytest

from cardquest.adapters.telegram_client import TelegramClient
from cardquest.config import Settings
from cardquest.containers import AppContainer
from cardquest.domain.models import StagingRegistration, UserRecord
from cardquest.errors import ConflictError
from cardquest.services.avatars import AvatarService, AvatarStorage
from cardquest.services.dialogue import RegistrationDialogue
from cardquest.services.quests import QuestCommandHandler
from cardquest.services.sessions import InMemorySessionStore
from cardquest.services.staging import StageRepository, StagingService
from cardquest.services.users import UserRepository, UserService

CARD_HASH = "a" * 64
OTHER_CARD_HASH = "b" * 64


@dataclass
class InMemoryStageRepository(StageRepository):
    """In-memory staging repository for tests."""

    stages: dict[str, StagingRegistration] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_stage(self, stage: StagingRegistration) -> StagingRegistration:
        with self.lock:
            if stage.card_hash in self.stages:
                raise ConflictError("Duplicate card_hash", field="card_hash")
            self.stages[stage.card_hash] = stage
        return stage

    def consume_by_prefix(self, token: str) -> StagingRegistration | None:
        with self.lock:
            for card_hash in self.stages:
                if card_hash.startswith(token):
                    return self.stages.pop(card_hash)
        return None


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository enforcing the store's unique columns."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_user(self, user: UserRecord) -> UserRecord:
        with self.lock:
            for existing in self.users.values():
                if existing.username == user.username:
                    raise ConflictError("Duplicate username", field="username")
                if existing.card_hash == user.card_hash:
                    raise ConflictError("Duplicate card_hash", field="card_hash")
            self.users[user.id] = user
        return user

    def get_by_card_hash(self, card_hash: str) -> UserRecord | None:
        return next(
            (user for user in self.users.values() if user.card_hash == card_hash),
            None,
        )

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        return self.users.get(user_id)

    def get_by_username(self, username: str) -> UserRecord | None:
        return next(
            (user for user in self.users.values() if user.username == username),
            None,
        )


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button


@dataclass
class FakeTelegramFileClient:
    """Fake Telegram file client that streams static bytes."""

    content: bytes = b"fake-image-bytes"
    profile_file_id: str | None = "profile-file"
    requested: list[str] = field(default_factory=list)

    async def stream_file(self, file_id: str) -> AsyncIterator[bytes]:
        self.requested.append(file_id)
        half = len(self.content) // 2
        yield self.content[:half]
        yield self.content[half:]

    async def get_profile_photo_file_id(self, chat_id: int) -> str | None:
        return self.profile_file_id


@dataclass
class InMemoryAvatarStorage(AvatarStorage):
    """Dict-backed avatar storage."""

    objects: dict[str, bytes] = field(default_factory=dict)
    fail_writes: bool = False

    async def write(self, key: str, chunks: AsyncIterator[bytes]) -> None:
        buffer = b""
        async for chunk in chunks:
            buffer += chunk
        if self.fail_writes:
            raise OSError("disk full")
        self.objects[key] = buffer

    async def promote(self, source_key: str, key: str) -> None:
        if source_key not in self.objects:
            raise OSError(f"missing {source_key}")
        self.objects[key] = self.objects.pop(source_key)

    async def read(self, key: str) -> bytes | None:
        return self.objects.get(key)

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key.payload.signature",
    )


@pytest.fixture
def stage_repository() -> InMemoryStageRepository:
    return InMemoryStageRepository()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def avatar_storage() -> InMemoryAvatarStorage:
    return InMemoryAvatarStorage()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def staging_service(stage_repository: InMemoryStageRepository) -> StagingService:
    return StagingService(stage_repository)


@pytest.fixture
def user_service(user_repository: InMemoryUserRepository) -> UserService:
    return UserService(user_repository)


@pytest.fixture
def avatar_service(
    file_client: FakeTelegramFileClient, avatar_storage: InMemoryAvatarStorage
) -> AvatarService:
    return AvatarService(file_client=file_client, storage=avatar_storage)


@pytest.fixture
def dialogue(
    staging_service: StagingService,
    user_service: UserService,
    avatar_service: AvatarService,
    session_store: InMemorySessionStore,
) -> RegistrationDialogue:
    return RegistrationDialogue(
        stager=staging_service,
        users=user_service,
        avatars=avatar_service,
        sessions=session_store,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    telegram_client: FakeTelegramClient,
    staging_service: StagingService,
    user_service: UserService,
    avatar_service: AvatarService,
    dialogue: RegistrationDialogue,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        staging_service=staging_service,
        user_service=user_service,
        avatar_service=avatar_service,
        dialogue=dialogue,
        quest_command_handler=QuestCommandHandler(telegram_client),
        close_resources=close_resources,
    )
