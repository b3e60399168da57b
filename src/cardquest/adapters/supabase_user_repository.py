"""Supabase-backed user repository."""

from dataclasses import dataclass
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from cardquest.adapters.supabase_errors import translate_api_error
from cardquest.domain.models import UserRecord
from cardquest.errors import UpstreamError
from cardquest.services.users import UserRepository

_COLUMNS = "id, card_hash, username, telegram_chat_id"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def create_user(self, user: UserRecord) -> UserRecord:
        """Insert a user row; anything but exactly one written row is an error."""
        try:
            response = (
                self.client.table("users")
                .insert(
                    {
                        "id": str(user.id),
                        "card_hash": user.card_hash,
                        "username": user.username,
                        "telegram_chat_id": user.telegram_chat_id,
                    }
                )
                .execute()
            )
        except APIError as exc:
            raise translate_api_error(exc, ("username", "card_hash")) from exc
        if not response.data or len(response.data) != 1:
            raise UpstreamError(
                "Invalid amount of rows affected, expected 1 but got "
                f"{len(response.data or [])}"
            )
        return _parse_user(response.data[0])

    def get_by_card_hash(self, card_hash: str) -> UserRecord | None:
        """Return the user registered with a card, if present."""
        return self._find_one("card_hash", card_hash)

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with the given id, if present."""
        return self._find_one("id", str(user_id))

    def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user with the given username, if present."""
        return self._find_one("username", username)

    def _find_one(self, column: str, value: str) -> UserRecord | None:
        try:
            response = (
                self.client.table("users")
                .select(_COLUMNS)
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except APIError as exc:
            raise translate_api_error(exc, ()) from exc
        if not response.data:
            return None
        return _parse_user(response.data[0])


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        card_hash=str(row["card_hash"]),
        id=UUID(str(row["id"])),
        username=str(row["username"]),
        telegram_chat_id=int(row["telegram_chat_id"]),
    )
