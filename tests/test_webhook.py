"""Tests for Telegram webhook handling."""

from fastapi.testclient import TestClient

from cardquest.api.app import create_app
from cardquest.domain.dialogue import GetUsername
from cardquest.services.dialogue import AVATAR_CALLBACK_DATA, GENERIC_FAILURE_TEXT
from cardquest.services.quests import QUESTS_UNAVAILABLE_TEXT
from tests.conftest import CARD_HASH, FakeTelegramClient, FakeTelegramFileClient

CHAT_ID = 99


def _message(update_id: int, **content: object) -> dict[str, object]:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id * 10,
            "date": 1700000000 + update_id,
            "chat": {"id": CHAT_ID, "type": "private"},
            "from": {"id": 123, "is_bot": False, "first_name": "Test"},
            **content,
        },
    }


def _photo_sizes() -> list[dict[str, object]]:
    return [
        {"file_id": "small", "file_unique_id": "s", "width": 64, "height": 64},
        {"file_id": "large", "file_unique_id": "l", "width": 512, "height": 512},
    ]


def _callback(update_id: int, data: str) -> dict[str, object]:
    return {
        "update_id": update_id,
        "callback_query": {
            "id": f"cbq-{update_id}",
            "from": {"id": 123, "is_bot": False, "first_name": "Test"},
            "message": {
                "message_id": 1,
                "date": 1700000000,
                "chat": {"id": CHAT_ID, "type": "private"},
                "text": "Now send a picture",
            },
            "data": data,
        },
    }


def test_full_registration_flow(
    container,
    telegram_client: FakeTelegramClient,
    file_client: FakeTelegramFileClient,
) -> None:
    client = TestClient(create_app(container))

    staged = client.post("/user/register", json={"card_hash": CARD_HASH}).json()
    client.post("/telegram/webhook", json=_message(1, text="/register aaaaaaaa"))
    client.post("/telegram/webhook", json=_message(2, text="alice"))
    assert telegram_client.markups[-1] is not None
    response = client.post("/telegram/webhook", json=_message(3, photo=_photo_sizes()))

    assert response.status_code == 200
    assert telegram_client.messages[-1] == (
        CHAT_ID,
        "Registration completed successfully!\nUsername: alice",
    )
    assert file_client.requested == ["large"]

    user = client.get(f"/user/get/{CARD_HASH}").json()
    assert user == {
        "success": True,
        "card_hash": CARD_HASH,
        "id": staged["id"],
        "username": "alice",
        "telegram_chat_id": CHAT_ID,
    }
    avatar = client.get(f"/user/avatar/{staged['id']}")
    assert avatar.content == b"fake-image-bytes"


def test_profile_photo_button_completes_registration(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))
    client.post("/user/register", json={"card_hash": CARD_HASH})
    client.post("/telegram/webhook", json=_message(1, text="/register aaaaaaaa"))
    client.post("/telegram/webhook", json=_message(2, text="alice"))

    response = client.post(
        "/telegram/webhook", json=_callback(3, AVATAR_CALLBACK_DATA)
    )

    assert response.status_code == 200
    assert telegram_client.callbacks == [("cbq-3", None)]
    assert telegram_client.messages[-1][1].startswith(
        "Registration completed successfully!"
    )


def test_unknown_callback_is_only_answered(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_callback(1, "something-else"))

    assert telegram_client.callbacks == [("cbq-1", None)]
    assert telegram_client.messages == []


def test_parse_error_replies_with_usage(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message(1, text="/register"))
    client.post("/telegram/webhook", json=_message(2, text="/dance"))

    assert telegram_client.messages == [
        (CHAT_ID, "Expected exactly one registration token. Usage: /register <token>"),
        (CHAT_ID, "Unknown command /dance."),
    ]


def test_quest_commands_are_handed_off(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))
    client.post("/user/register", json={"card_hash": CARD_HASH})
    client.post("/telegram/webhook", json=_message(1, text="/register aaaaaaaa"))

    client.post("/telegram/webhook", json=_message(2, text="/acknowledge 5"))

    assert telegram_client.messages[-1] == (CHAT_ID, QUESTS_UNAVAILABLE_TEXT)
    assert isinstance(container.dialogue.sessions.states[CHAT_ID], GetUsername)


def test_dialogue_failure_sends_generic_message(
    container, telegram_client: FakeTelegramClient, monkeypatch
) -> None:
    async def broken_handle(chat_id, event):  # type: ignore[no-untyped-def]
        raise RuntimeError("boom")

    monkeypatch.setattr(container.dialogue, "handle", broken_handle)
    client = TestClient(create_app(container))

    response = client.post("/telegram/webhook", json=_message(1, text="/start"))

    assert response.status_code == 200
    assert telegram_client.messages == [(CHAT_ID, GENERIC_FAILURE_TEXT)]


def test_lifespan_syncs_commands(
    container, telegram_client: FakeTelegramClient
) -> None:
    with TestClient(create_app(container)) as client:
        assert client.get("/health").status_code == 200

    assert telegram_client.commands is not None
    assert {
        "command": "register",
        "description": "Start registration with your card token",
    } in telegram_client.commands
    assert telegram_client.menu_button == {"type": "commands"}
