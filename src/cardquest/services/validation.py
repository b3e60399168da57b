"""Input checks shared by the chat and HTTP entrypoints."""

import string

from cardquest.domain.models import CARD_HASH_LENGTH, TOKEN_LENGTH
from cardquest.errors import ValidationError

_HEX_DIGITS = frozenset(string.hexdigits)


def validate_card_hash(card_hash: str) -> str:
    """Return the hash if it looks like a SHA-256 hex digest."""
    validate_card_hash_length(card_hash)
    if not set(card_hash) <= _HEX_DIGITS:
        raise ValidationError("SHA256 provided hash contains non-hex characters")
    return card_hash


def validate_token(token: str) -> str:
    """Return the token if it has the fixed registration token length."""
    if len(token) != TOKEN_LENGTH:
        raise ValidationError(
            f"Registration token must be {TOKEN_LENGTH} characters long"
        )
    return token


def validate_card_hash_length(card_hash: str) -> str:
    """Return the hash if it has the length of a SHA-256 hex digest."""
    if len(card_hash) != CARD_HASH_LENGTH:
        raise ValidationError(
            "SHA256 provided hash is not of valid SHA256 length "
            f"({len(card_hash)} != {CARD_HASH_LENGTH})"
        )
    return card_hash
