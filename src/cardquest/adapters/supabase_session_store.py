"""Supabase-backed dialogue session store."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from cardquest.domain.dialogue import (
    DialogueState,
    StartRegister,
    state_from_dict,
    state_to_dict,
)
from cardquest.services.sessions import SessionStore


@dataclass
class SupabaseSessionStore(SessionStore):
    """Keeps dialogue states in the ``registration_dialogues`` table."""

    client: Client

    async def get_or_default(self, chat_id: int) -> DialogueState:
        """Return the stored state or StartRegister."""
        return await asyncio.to_thread(self._get, chat_id)

    async def put(self, chat_id: int, state: DialogueState) -> None:
        """Upsert the chat's state."""
        await asyncio.to_thread(self._put, chat_id, state)

    async def delete(self, chat_id: int) -> None:
        """Delete the chat's row."""
        await asyncio.to_thread(self._delete, chat_id)

    def _get(self, chat_id: int) -> DialogueState:
        response = (
            self.client.table("registration_dialogues")
            .select("chat_id, context_json")
            .eq("chat_id", chat_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return StartRegister()
        context = response.data[0].get("context_json") or {}
        return state_from_dict(context)

    def _put(self, chat_id: int, state: DialogueState) -> None:
        context = state_to_dict(state)
        self.client.table("registration_dialogues").upsert(
            {
                "chat_id": chat_id,
                "state": context["state"],
                "context_json": context,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def _delete(self, chat_id: int) -> None:
        self.client.table("registration_dialogues").delete().eq(
            "chat_id", chat_id
        ).execute()
