"""Telegram bot command configuration and parsing."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str
    usage: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    HELP = TelegramCommand("help", "Show this message", "/help")
    START = TelegramCommand("start", "What this bot does", "/start")
    REGISTER = TelegramCommand(
        "register", "Start registration with your card token", "/register <token>"
    )
    CANCEL = TelegramCommand("cancel", "Cancel the registration", "/cancel")
    ACKNOWLEDGE = TelegramCommand(
        "acknowledge", "Complete an assigned quest", "/acknowledge <quest_id>"
    )
    CREATE_QUEST = TelegramCommand(
        "createquest", "Assign a quest to a player", "/createquest <name> <assignee>"
    )


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Register:
    token: str


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Acknowledge:
    quest_id: str


@dataclass(frozen=True)
class CreateQuest:
    name: str
    assignee: str


Command = Help | Start | Register | Cancel | Acknowledge | CreateQuest
QUEST_COMMANDS = (Acknowledge, CreateQuest)


class CommandParseError(ValueError):
    """Raised for unknown commands or commands with missing arguments."""

    def __init__(self, message: str, usage: str | None = None) -> None:
        super().__init__(message)
        self.usage = usage


def parse_command(text: str) -> Command | None:
    """Parse a chat message into a command.

    Returns ``None`` for plain text. Command names are case-insensitive and
    may carry the ``@botname`` suffix Telegram adds in group chats.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    head, *args = stripped.split()
    name = head[1:].split("@", maxsplit=1)[0].lower()
    entry = _COMMANDS_BY_NAME.get(name)
    if entry is None:
        raise CommandParseError(f"Unknown command /{name}")
    usage = entry.value.usage

    if entry is BotCommand.HELP:
        return Help()
    if entry is BotCommand.START:
        return Start()
    if entry is BotCommand.CANCEL:
        return Cancel()
    if entry is BotCommand.REGISTER:
        if len(args) != 1:
            raise CommandParseError("Expected exactly one registration token", usage)
        return Register(token=args[0])
    if entry is BotCommand.ACKNOWLEDGE:
        if len(args) != 1:
            raise CommandParseError("Expected exactly one quest id", usage)
        return Acknowledge(quest_id=args[0])
    if len(args) != 2:  # noqa: PLR2004
        raise CommandParseError("Expected a quest name and an assignee", usage)
    return CreateQuest(name=args[0], assignee=args[1])


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def help_text() -> str:
    """Return the /help reply listing every command."""
    lines = [
        f"{entry.value.usage} - {entry.value.description}"
        for entry in BotCommand
        if entry not in {BotCommand.ACKNOWLEDGE, BotCommand.CREATE_QUEST}
    ]
    return "\n".join(lines)


_COMMANDS_BY_NAME = {entry.value.command: entry for entry in BotCommand}

CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
