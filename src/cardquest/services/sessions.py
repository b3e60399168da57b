"""Per-chat storage of registration dialogue state."""

from dataclasses import dataclass, field
from typing import Protocol

from cardquest.domain.dialogue import DialogueState, StartRegister


class SessionStore(Protocol):
    """Keyed storage of dialogue states, one per chat."""

    async def get_or_default(self, chat_id: int) -> DialogueState:
        """Return the chat's state, or StartRegister when none is stored."""

    async def put(self, chat_id: int, state: DialogueState) -> None:
        """Store the chat's state, replacing any previous one."""

    async def delete(self, chat_id: int) -> None:
        """Forget the chat's state."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-local session store."""

    states: dict[int, DialogueState] = field(default_factory=dict)

    async def get_or_default(self, chat_id: int) -> DialogueState:
        """Return the stored state or the initial one."""
        return self.states.get(chat_id, StartRegister())

    async def put(self, chat_id: int, state: DialogueState) -> None:
        """Store a state; StartRegister is the default and is not kept."""
        if isinstance(state, StartRegister):
            self.states.pop(chat_id, None)
            return
        self.states[chat_id] = state

    async def delete(self, chat_id: int) -> None:
        """Drop the chat's state."""
        self.states.pop(chat_id, None)
