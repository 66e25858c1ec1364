"""
Domain errors and global exception handlers — prevents stack-trace leakage to clients.

Every error response uses the ``{"success": false, "message": ...}`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


# ── Domain errors ───────────────────────────────────────────────────
class InvalidArgument(ValueError):
    """A caller passed a value the operation cannot accept."""


class AuthenticationFailure(Exception):
    """Credentials (or a bearer token) did not check out.

    The message is always one of a few fixed strings; the real reason is
    never attached.
    """

    def __init__(self, message: str = INVALID_CREDENTIALS) -> None:
        super().__init__(message)
        self.message = message


class DuplicateEmail(Exception):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


class PersistenceError(Exception):
    """A write against the store failed; the cause is chained."""


# ── Handlers ────────────────────────────────────────────────────────
def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = first.get("loc", ())
        if first.get("type") == "json_invalid":
            message = "Invalid JSON Request"
        elif first.get("type") == "missing" and len(loc) > 1:
            message = f"Missing required parameter: {loc[-1]}"
        elif first.get("type") == "missing":
            message = "Missing request body"
        elif first.get("type") == "value_error":
            message = str(first.get("msg", "")).removeprefix("Value error, ")
        else:
            field = ".".join(str(p) for p in loc[1:])
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return _error(status.HTTP_400_BAD_REQUEST, message)


async def _invalid_argument_handler(_request: Request, exc: InvalidArgument) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


async def _authentication_failure_handler(
    _request: Request, exc: AuthenticationFailure
) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


async def _duplicate_email_handler(_request: Request, _exc: DuplicateEmail) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, "Email already registered")


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _error(status.HTTP_409_CONFLICT, "Database constraint violation")


async def _persistence_error_handler(_request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure: %s", exc, exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal database error")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal database error")


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidArgument, _invalid_argument_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AuthenticationFailure, _authentication_failure_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DuplicateEmail, _duplicate_email_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PersistenceError, _persistence_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
