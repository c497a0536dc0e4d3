"""Response envelope shared by every endpoint, and the error codes it carries."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from api.middleware import get_current_request_id
from utils.timezone import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Matches the X-Request-ID response header")


class APIResponse(BaseModel):
    """
    {success, message, data, error, meta} for every response.

    On failure `message` repeats error.message so clients can show it
    directly.
    """

    success: bool
    message: str | None = None
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    # Outside a request (scripts, tests) there is no middleware-assigned ID
    return APIMeta(timestamp=now_utc(), request_id=get_current_request_id() or str(uuid4()))


def success_response(data: Any, message: str | None = None) -> APIResponse:
    return APIResponse(success=True, message=message, data=data, meta=_meta())


def error_response(code: str, message: str) -> APIResponse:
    return APIResponse(
        success=False,
        message=message,
        error=APIError(code=code, message=message),
        meta=_meta(),
    )


class ErrorCodes:
    # Auth
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_OTP = "INVALID_OTP"
    RATE_LIMITED = "RATE_LIMITED"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"

    # Records
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
