"""Error taxonomy shared by the dialogue and the HTTP gateway.

Every error carries a machine-readable ``kind`` and the HTTP status the
gateway answers with, so the same exception can be rendered into the JSON
envelope or turned into a chat notice without translation tables.
"""


class CardquestError(Exception):
    """Base class for expected, user-reportable failures."""

    kind = "UNKNOWN"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CardquestError):
    """Malformed card hash or registration token."""

    kind = "INVALID_FORMAT"
    status_code = 400


class NotFoundError(CardquestError):
    """Unknown staging record, user or avatar."""

    kind = "NOT_FOUND"
    status_code = 404


class ConflictError(CardquestError):
    """A uniqueness constraint rejected the write."""

    kind = "CONFLICT"
    status_code = 409

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class UpstreamError(CardquestError):
    """The store or Telegram failed, or answered with an unexpected shape."""

    kind = "UPSTREAM_ERROR"
    status_code = 502


class AvatarWriteError(CardquestError):
    """Avatar bytes could not be written to storage."""

    kind = "IO_ERROR"
    status_code = 500
