"""JSON envelope shared by every gateway response.

Successful calls answer ``{"success": true, ...data}``; failures answer
``{"success": false, "error": {"kind": ..., "message": ...}}`` with the
status code of the error kind.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cardquest.errors import CardquestError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def payload(data: dict[str, object]) -> dict[str, object]:
    """Wrap response data in the success envelope."""
    return {"success": True, **data}


def error_response(error: CardquestError) -> JSONResponse:
    """Render an error into the failure envelope."""
    return JSONResponse(
        status_code=error.status_code,
        content={
            "success": False,
            "error": {"kind": error.kind, "message": error.message},
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    """Route framework and domain errors through the envelope."""

    @app.exception_handler(CardquestError)
    async def handle_domain_error(_: Request, exc: CardquestError) -> JSONResponse:
        if exc.status_code >= 500:  # noqa: PLR2004
            logger.error("Request failed: %s", exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        return error_response(ValidationError(details))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:  # noqa: PLR2004
            return error_response(
                NotFoundError(
                    f"Endpoint `{request.url.path}` for method "
                    f"`{request.method}` not found"
                )
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {"kind": "HTTP_ERROR", "message": str(exc.detail)},
            },
        )
