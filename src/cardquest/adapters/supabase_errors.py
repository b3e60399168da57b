"""Translation of PostgREST errors into domain errors."""

from postgrest.exceptions import APIError

from cardquest.errors import ConflictError, UpstreamError

_UNIQUE_VIOLATION = "23505"


def translate_api_error(exc: APIError, unique_fields: tuple[str, ...]) -> Exception:
    """Map a PostgREST error onto ConflictError or UpstreamError."""
    if exc.code == _UNIQUE_VIOLATION:
        text = f"{exc.message} {exc.details}"
        field = next((name for name in unique_fields if name in text), None)
        return ConflictError(f"Duplicate {field or 'record'}", field=field)
    return UpstreamError(f"Database request failed: {exc.message}")
