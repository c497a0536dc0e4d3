"""Security middleware for FastAPI - session resolution and user context."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from auth.types import Session
from core.exceptions import AuthenticationRequiredError, AuthorizationError
from utils.user_context import set_current_user_id, clear_current_user_id


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Session token from an 'Authorization: Bearer' header or the session cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(cookie_name)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the caller's session and sets user context.

    Most of the workshop API is public (booking, tracking, history), so this
    middleware never rejects a request. It:
    1. Extracts the session token from the Bearer header or the session cookie
    2. Validates it via SessionManager
    3. Sets request.state.session and the user context for audit attribution
    4. Clears context after request completes

    Routes that need a role call require_admin().
    """

    def __init__(self, app, session_manager: SessionManager, cookie_name: str = "rmw_session"):
        super().__init__(app)
        self._session_manager = session_manager
        self._cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        request.state.session = None

        token = extract_token(request, self._cookie_name)
        if token:
            try:
                request.state.session = self._session_manager.validate_session(token)
            except SessionExpiredError:
                # Treated as anonymous; admin routes answer 401
                pass

        session = request.state.session
        if session is None:
            return await call_next(request)

        set_current_user_id(session.user_id)
        try:
            return await call_next(request)
        finally:
            # Always clear context
            clear_current_user_id()


def current_session(request: Request) -> Session | None:
    """Session attached by AuthMiddleware, or None for anonymous callers."""
    return getattr(request.state, "session", None)


def require_admin(request: Request) -> Session:
    """Return the caller's admin session.

    Raises:
        AuthenticationRequiredError: If the request carries no valid session.
        AuthorizationError: If the session belongs to a customer.
    """
    session = current_session(request)
    if session is None:
        raise AuthenticationRequiredError("Authentication required")
    if not session.is_admin:
        raise AuthorizationError("Admin access required")
    return session
