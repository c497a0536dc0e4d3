"""Request-scoped middleware for API requests."""

import re
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)

# IDs forwarded by the reverse proxy are trusted only if they look like IDs
_FORWARDED_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def get_current_request_id() -> str | None:
    """ID of the request being handled, or None outside a request."""
    return _current_request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request with an ID for tracing.

    Reuses a well-formed X-Request-ID from upstream, otherwise mints one.
    The ID is echoed in the response header and, through the context
    variable, in the `meta.request_id` of the response envelope.
    """

    async def dispatch(self, request: Request, call_next):
        forwarded = request.headers.get("X-Request-ID", "")
        request_id = forwarded if _FORWARDED_ID.match(forwarded) else str(uuid4())
        request.state.request_id = request_id

        token = _current_request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _current_request_id.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response
