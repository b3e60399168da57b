"""HTTP registration gateway: staging and read-only user lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from cardquest.api.responses import payload
from cardquest.domain.models import UserRecord
from cardquest.errors import NotFoundError
from cardquest.services.validation import validate_card_hash_length

if TYPE_CHECKING:
    from cardquest.containers import AppContainer

router = APIRouter(prefix="/user", tags=["user"])


class Stage1Register(BaseModel):
    """Body of a phase-one registration."""

    card_hash: str


@router.post("/register")
async def register(body: Stage1Register, request: Request) -> dict[str, object]:
    """Stage a validated card for chat registration."""
    container: AppContainer = request.app.state.container
    stage = await container.staging_service.register(body.card_hash)
    return payload({"id": str(stage.id), "card_hash": stage.card_hash})


@router.get("/get/{card_hash}")
async def get_user(card_hash: str, request: Request) -> dict[str, object]:
    """Return the registered user for a card hash."""
    container: AppContainer = request.app.state.container
    validate_card_hash_length(card_hash)
    user = await container.user_service.lookup_by_hash(card_hash)
    return payload(_serialize_user(user))


@router.get(
    "/avatar/{user_id}",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_avatar(user_id: str, request: Request) -> Response:
    """Return the avatar image of a registered user."""
    container: AppContainer = request.app.state.container
    try:
        parsed_id = UUID(user_id)
    except ValueError as exc:
        raise NotFoundError(f"Could not find user with id {user_id}!") from exc
    user = await container.user_service.lookup_by_id(parsed_id)
    content = await container.avatar_service.read(user.card_hash)
    return Response(content=content, media_type="image/png")


def _serialize_user(user: UserRecord) -> dict[str, object]:
    return {
        "card_hash": user.card_hash,
        "id": str(user.id),
        "username": user.username,
        "telegram_chat_id": user.telegram_chat_id,
    }
