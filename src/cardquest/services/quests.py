"""Hand-off point for quest commands sent to the registration bot."""

import logging
from dataclasses import dataclass

from cardquest.adapters.telegram_client import TelegramClient
from cardquest.telegram_commands import Acknowledge, CreateQuest

logger = logging.getLogger(__name__)

QUESTS_UNAVAILABLE_TEXT = (
    "Quests are assigned and acknowledged by the game masters' service; "
    "this command is not available in the registration bot."
)


@dataclass
class QuestCommandHandler:
    """Receives /acknowledge and /createquest.

    Quest assignment is owned by another service; routing the commands here
    keeps their arguments from being read as a username or an avatar reply.
    """

    telegram_client: TelegramClient

    async def handle(self, chat_id: int, command: Acknowledge | CreateQuest) -> None:
        """Tell the chat that quest commands are handled elsewhere."""
        logger.info(
            "Quest command received",
            extra={"chat_id": chat_id, "command": type(command).__name__},
        )
        await self.telegram_client.send_message(
            chat_id=chat_id, text=QUESTS_UNAVAILABLE_TEXT
        )
