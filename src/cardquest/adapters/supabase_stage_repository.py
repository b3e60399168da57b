"""Supabase-backed staging repository."""

from dataclasses import dataclass
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from cardquest.adapters.supabase_errors import translate_api_error
from cardquest.domain.models import StagingRegistration
from cardquest.errors import UpstreamError
from cardquest.services.staging import StageRepository


@dataclass
class SupabaseStageRepository(StageRepository):
    """Supabase implementation for staging records."""

    client: Client

    def create_stage(self, stage: StagingRegistration) -> StagingRegistration:
        """Insert a staging row and return it."""
        try:
            response = (
                self.client.table("reg_stage_users")
                .insert({"card_hash": stage.card_hash, "id": str(stage.id)})
                .execute()
            )
        except APIError as exc:
            raise translate_api_error(exc, ("card_hash",)) from exc
        if not response.data or len(response.data) != 1:
            raise UpstreamError(
                "Invalid amount of rows affected, expected 1 but got "
                f"{len(response.data or [])}"
            )
        return _parse_stage(response.data[0])

    def consume_by_prefix(self, token: str) -> StagingRegistration | None:
        """Delete and return one staging row in a single statement.

        ``consume_registration_stage`` locks the matching row with
        ``FOR UPDATE SKIP LOCKED`` and deletes it, so two callers with the
        same token never both receive it.
        """
        try:
            response = self.client.rpc(
                "consume_registration_stage", {"token_prefix": token}
            ).execute()
        except APIError as exc:
            raise translate_api_error(exc, ()) from exc
        if not response.data:
            return None
        return _parse_stage(response.data[0])


def _parse_stage(row: dict[str, object]) -> StagingRegistration:
    return StagingRegistration(card_hash=str(row["card_hash"]), id=UUID(str(row["id"])))
