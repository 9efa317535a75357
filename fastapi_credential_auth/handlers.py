"""Exception handlers producing the ``{"success": false, ...}`` envelope."""

import logging

from fastapi import FastAPI, Request, status  # type: ignore[import-untyped]
from fastapi.exceptions import RequestValidationError  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from fastapi_credential_auth.errors import AuthError, ErrorCode

logger = logging.getLogger(__name__)


async def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    """Render an :class:`AuthError` with its status, code and extra fields."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "error": {"code": exc.error_code},
            **exc.extra,
        },
        headers=exc.headers,
    )


async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render body validation failures as a 400 with per-field details."""
    details = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc if part != "body") or "body"
        details.append({"field": field, "message": error.get("msg", "Invalid value")})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Invalid request body",
            "error": {"code": ErrorCode.VALIDATION_ERROR, "details": details},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected failure and return a generic 500."""
    logger.error(
        "Unhandled %s on %s %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "An unexpected error occurred",
            "error": {"code": ErrorCode.INTERNAL_SERVER_ERROR},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the error envelope handlers on an application.

    Example:
        ```python
        app = FastAPI()
        register_exception_handlers(app)
        app.include_router(get_auth_router(...), prefix="/auth")
        ```
    """
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
