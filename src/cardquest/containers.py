"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import Client, create_client

from cardquest.adapters.local_avatar_storage import LocalAvatarStorage
from cardquest.adapters.supabase_avatar_storage import SupabaseAvatarStorage
from cardquest.adapters.supabase_session_store import SupabaseSessionStore
from cardquest.adapters.supabase_stage_repository import SupabaseStageRepository
from cardquest.adapters.supabase_user_repository import SupabaseUserRepository
from cardquest.adapters.telegram_client import HttpxTelegramClient, TelegramClient
from cardquest.adapters.telegram_file_client import HttpxTelegramFileClient
from cardquest.config import Settings
from cardquest.services.avatars import AvatarService, AvatarStorage
from cardquest.services.dialogue import RegistrationDialogue
from cardquest.services.quests import QuestCommandHandler
from cardquest.services.sessions import InMemorySessionStore, SessionStore
from cardquest.services.staging import StagingService
from cardquest.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies.

    The HTTP gateway and the chat dialogue share the same staging and user
    services so both see one view of registrations.
    """

    settings: Settings
    telegram_client: TelegramClient
    staging_service: StagingService
    user_service: UserService
    avatar_service: AvatarService
    dialogue: RegistrationDialogue
    quest_command_handler: QuestCommandHandler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    staging_service = StagingService(SupabaseStageRepository(supabase_client))
    user_service = UserService(SupabaseUserRepository(supabase_client))
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    avatar_service = AvatarService(
        file_client=telegram_file_client,
        storage=_build_avatar_storage(resolved_settings, supabase_client),
    )
    dialogue = RegistrationDialogue(
        stager=staging_service,
        users=user_service,
        avatars=avatar_service,
        sessions=_build_session_store(resolved_settings, supabase_client),
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        staging_service=staging_service,
        user_service=user_service,
        avatar_service=avatar_service,
        dialogue=dialogue,
        quest_command_handler=QuestCommandHandler(telegram_client),
        close_resources=close_resources,
    )


def _build_avatar_storage(settings: Settings, client: Client) -> AvatarStorage:
    if settings.avatar_storage == "supabase":
        return SupabaseAvatarStorage(client=client, bucket=settings.avatar_bucket)
    return LocalAvatarStorage(directory=Path(settings.avatar_dir))


def _build_session_store(settings: Settings, client: Client) -> SessionStore:
    if settings.session_store == "supabase":
        return SupabaseSessionStore(client)
    return InMemorySessionStore()
