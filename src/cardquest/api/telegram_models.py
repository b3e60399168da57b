"""Pydantic models for the parts of Telegram updates the bot reads."""

from pydantic import BaseModel, ConfigDict, Field

from cardquest.domain.models import PhotoVariant


class TelegramUser(BaseModel):
    """Sender of a message or callback."""

    id: int
    is_bot: bool | None = None
    first_name: str | None = None


class TelegramChat(BaseModel):
    """Chat a message belongs to; its id keys the registration dialogue."""

    id: int
    type: str


class TelegramPhotoSize(BaseModel):
    """One resolution of an attached photo."""

    file_id: str
    file_unique_id: str
    width: int
    height: int

    def to_variant(self) -> PhotoVariant:
        return PhotoVariant(file_id=self.file_id, width=self.width, height=self.height)


class TelegramMessage(BaseModel):
    """Inbound chat message carrying text, a photo, or neither."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    date: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    photo: list[TelegramPhotoSize] | None = None

    def photo_variants(self) -> list[PhotoVariant]:
        """Return every attached resolution, or an empty list."""
        return [size.to_variant() for size in self.photo or []]


class TelegramCallbackQuery(BaseModel):
    """Inline keyboard press."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdate(BaseModel):
    """Webhook update; only messages and callback queries are handled."""

    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None
