"""HTTP routes for authentication."""

import ipaddress

from fastapi import APIRouter, Request, Response

from auth.config import AuthConfig
from auth.exceptions import SessionExpiredError
from auth.security_middleware import current_session, extract_token
from auth.service import AuthService
from auth.types import AdminLoginRequest, AuthenticatedUser, OtpSendRequest, OtpVerifyRequest
from api.base import success_response
from core.exceptions import AuthenticationRequiredError


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_auth_router(auth_service: AuthService, config: AuthConfig) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])

    def _start_session(response: Response, result: AuthenticatedUser) -> dict:
        """Set the session cookie and build the login payload."""
        session = result.session
        response.set_cookie(
            key=config.session_cookie_name,
            value=session.token,
            httponly=True,
            secure=config.session_cookie_secure,
            samesite="lax",
            max_age=int((session.expires_at - session.created_at).total_seconds()),
        )
        return {
            "token": session.token,
            "expires_at": session.expires_at.isoformat(),
            "is_new_user": result.is_new_user,
            "user": result.user.model_dump(mode="json"),
        }

    @router.post("/admin/login")
    async def admin_login(request: Request, response: Response, body: AdminLoginRequest):
        """Staff login with email and password."""
        result = auth_service.admin_login(
            email=body.email,
            password=body.password,
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return success_response(_start_session(response, result), "Login successful")

    @router.post("/otp/send")
    async def send_otp(request: Request, body: OtpSendRequest):
        """Send a login code to a customer's phone."""
        challenge = auth_service.send_otp(
            phone=body.phone,
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return success_response(
            challenge.model_dump(mode="json", exclude_none=True),
            "OTP sent successfully",
        )

    @router.post("/otp/verify")
    async def verify_otp(request: Request, response: Response, body: OtpVerifyRequest):
        """Verify a login code; first-time phones need a name.

        Sets the session cookie on success.
        """
        result = auth_service.verify_otp(
            phone=body.phone,
            otp=body.otp,
            name=body.name,
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return success_response(_start_session(response, result), "Login successful")

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Logout - revoke session and clear cookie."""
        session_token = extract_token(request, config.session_cookie_name)

        if session_token:
            auth_service.logout(
                session_token=session_token,
                ip_address=_get_client_ip(request),
            )

        response.delete_cookie(key=config.session_cookie_name)

        return success_response(None, "Logged out successfully")

    @router.get("/me")
    async def get_current_user(request: Request):
        """Get current authenticated user."""
        session = current_session(request)
        if session is None:
            raise AuthenticationRequiredError("Authentication required")

        user = auth_service.get_user(session)
        if user is None or not user.is_active:
            raise SessionExpiredError("Account no longer available")

        return success_response({
            "user": user.model_dump(mode="json"),
            "role": session.role.value,
            "expires_at": session.expires_at.isoformat(),
        })

    return router
