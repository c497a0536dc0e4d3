"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidPhoneError,
    RateLimitedError,
    SessionExpiredError,
)
from auth.types import (
    User,
    UserRole,
    Session,
    AdminLoginRequest,
    OtpSendRequest,
    OtpVerifyRequest,
    OtpChallenge,
    AuthenticatedUser,
)
from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.otp_store import OtpStore, generate_otp
from auth.passwords import hash_password, verify_password
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager
from auth.service import AuthService, normalize_phone
from auth.security_middleware import AuthMiddleware, require_admin
from auth.api import create_auth_router
