"""Global exception handlers for FastAPI.

Each domain error type maps to one status code. Anything unexpected is
logged with its traceback and answered with a generic message; internal
detail never reaches the client.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidPhoneError,
    RateLimitedError,
    SessionExpiredError,
)
from core.exceptions import (
    AuthenticationRequiredError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Clients only ever see public_message for these
_AUTH_ERRORS = {
    InvalidCredentialsError: (401, ErrorCodes.INVALID_CREDENTIALS),
    InvalidOtpError: (401, ErrorCodes.INVALID_OTP),
    SessionExpiredError: (401, ErrorCodes.SESSION_EXPIRED),
    RateLimitedError: (429, ErrorCodes.RATE_LIMITED),
}


def _json_error(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json_error(404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _json_error(409, ErrorCodes.ALREADY_EXISTS, str(exc))

    @app.exception_handler(AuthenticationRequiredError)
    async def authentication_handler(request: Request, exc: AuthenticationRequiredError):
        return _json_error(401, ErrorCodes.NOT_AUTHENTICATED, str(exc) or "Authentication required")

    @app.exception_handler(AuthorizationError)
    async def authorization_handler(request: Request, exc: AuthorizationError):
        return _json_error(403, ErrorCodes.AUTHORIZATION_DENIED, str(exc) or "Admin access required")

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        if isinstance(exc, InvalidPhoneError):
            return _json_error(400, ErrorCodes.VALIDATION_ERROR, str(exc) or exc.public_message)

        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}

        status_code, code = _AUTH_ERRORS.get(type(exc), (401, ErrorCodes.NOT_AUTHENTICATED))
        return _json_error(status_code, code, exc.public_message, headers=headers)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        # Domain ValidationError and pydantic errors raised by service-side model building
        return _json_error(400, ErrorCodes.VALIDATION_ERROR, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _json_error(500, ErrorCodes.INTERNAL_ERROR, "Operation failed")
