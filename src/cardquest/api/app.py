"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from cardquest.api.responses import install_error_handlers
from cardquest.api.telegram_models import TelegramMessage, TelegramUpdate
from cardquest.api.users import router as users_router
from cardquest.app_logging import configure_logging
from cardquest.containers import AppContainer
from cardquest.domain.dialogue import (
    AvatarButtonEvent,
    CommandEvent,
    DialogueEvent,
    PhotoEvent,
    TextEvent,
)
from cardquest.services.dialogue import AVATAR_CALLBACK_DATA, GENERIC_FAILURE_TEXT
from cardquest.telegram_commands import (
    CHAT_MENU_BUTTON,
    QUEST_COMMANDS,
    Command,
    CommandParseError,
    parse_command,
    telegram_commands,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        yield
        await app.state.container.close_resources()

    app = FastAPI(
        title="Cardquest",
        lifespan=lifespan,
        redoc_url="/api",
        openapi_url="/resources/openapi.json",
    )
    app.state.container = container

    install_error_handlers(app)
    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        telegram_client = state_container.telegram_client

        if update.callback_query:
            callback = update.callback_query
            await telegram_client.answer_callback_query(callback.id)
            if callback.data == AVATAR_CALLBACK_DATA and callback.message:
                await _run_dialogue(
                    state_container, callback.message.chat.id, AvatarButtonEvent()
                )
            return {"status": "ok"}

        message = update.message
        if message is None:
            return {"status": "ok"}
        chat_id = message.chat.id
        command = None

        if message.text is not None:
            try:
                command = parse_command(message.text)
            except CommandParseError as exc:
                hint = f"{exc}. Usage: {exc.usage}" if exc.usage else f"{exc}."
                await telegram_client.send_message(chat_id=chat_id, text=hint)
                return {"status": "ok"}
            if isinstance(command, QUEST_COMMANDS):
                await state_container.quest_command_handler.handle(chat_id, command)
                return {"status": "ok"}

        event = _to_event(message, command)
        if event is not None:
            await _run_dialogue(state_container, chat_id, event)
        return {"status": "ok"}

    async def _run_dialogue(
        state_container: AppContainer, chat_id: int, event: DialogueEvent
    ) -> None:
        try:
            prompt = await state_container.dialogue.handle(chat_id, event)
        except Exception:
            logger.exception("Dialogue step failed", extra={"chat_id": chat_id})
            await state_container.telegram_client.send_message(
                chat_id=chat_id, text=GENERIC_FAILURE_TEXT
            )
            return
        if prompt:
            await state_container.telegram_client.send_message(
                chat_id=chat_id, text=prompt.text, reply_markup=prompt.reply_markup
            )

    return app


def _to_event(
    message: TelegramMessage, command: Command | None
) -> DialogueEvent | None:
    """Translate a Telegram message into a dialogue event."""
    if message.photo:
        return PhotoEvent(photos=message.photo_variants())
    if message.text is None:
        return None
    if command is not None:
        return CommandEvent(command)
    return TextEvent(message.text)
