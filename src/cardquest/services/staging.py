"""Phase one of registration: staging validated cards."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from cardquest.domain.models import StagingRegistration
from cardquest.errors import NotFoundError
from cardquest.services.validation import validate_card_hash, validate_token

logger = logging.getLogger(__name__)


class StageRepository(Protocol):
    """Persistence interface for staging records."""

    def create_stage(self, stage: StagingRegistration) -> StagingRegistration:
        """Insert a staging record; raise ConflictError on a duplicate hash."""

    def consume_by_prefix(self, token: str) -> StagingRegistration | None:
        """Atomically remove and return one record whose hash starts with token."""


@dataclass
class StagingService:
    """Creates staging records and lets the chat claim them exactly once."""

    repository: StageRepository

    async def register(self, card_hash: str) -> StagingRegistration:
        """Stage a validated card and return the new record."""
        validate_card_hash(card_hash)
        stage = StagingRegistration(card_hash=card_hash, id=uuid4())
        created = await asyncio.to_thread(self.repository.create_stage, stage)
        logger.info("Staged card registration", extra={"stage_id": str(created.id)})
        return created

    async def consume(self, token: str) -> StagingRegistration:
        """Claim the staging record referenced by an 8-character token."""
        validate_token(token)
        stage = await asyncio.to_thread(self.repository.consume_by_prefix, token)
        if stage is None:
            raise NotFoundError("No pending registration for this token")
        logger.info("Consumed staging record", extra={"stage_id": str(stage.id)})
        return stage
