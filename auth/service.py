"""Authentication service - staff password login and customer OTP login."""

import re

from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.otp_store import OtpStore, generate_otp
from auth.passwords import verify_password
from auth.session import SessionManager
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.types import AuthenticatedUser, OtpChallenge, Session, User, UserRole
from auth.exceptions import (
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidPhoneError,
    RateLimitedError,
    SessionExpiredError,
)
from clients.sms_client import LoggingSmsClient
from core.exceptions import ValidationError

_MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")


def normalize_phone(phone: str) -> str:
    """
    Reduce a phone number to its 10-digit Indian mobile form.

    Accepts country code and separators: '+91 98765-43210' -> '9876543210'.

    Raises:
        InvalidPhoneError: If the last ten digits are not a mobile number.
    """
    digits = re.sub(r"\D", "", phone or "")[-10:]
    if not _MOBILE_PATTERN.match(digits):
        raise InvalidPhoneError("Invalid phone number")
    return digits


class AuthService:
    """Orchestrates authentication.

    Handles:
    - Staff login with email and password
    - Customer login with a one-time code sent to their phone
    - Session validation and logout
    """

    def __init__(
        self,
        config: AuthConfig,
        auth_db: AuthDatabase,
        session_manager: SessionManager,
        otp_store: OtpStore,
        otp_send_limiter: RateLimiter,
        login_limiter: RateLimiter,
        sms_client: LoggingSmsClient,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._auth_db = auth_db
        self._session_manager = session_manager
        self._otp_store = otp_store
        self._otp_send_limiter = otp_send_limiter
        self._login_limiter = login_limiter
        self._sms_client = sms_client
        self._security_logger = security_logger

    def _check_limit(
        self,
        limiter: RateLimiter,
        identity: str,
        ip_address: str | None,
    ) -> None:
        try:
            limiter.check_rate_limit(identity)
        except RateLimitedError:
            self._security_logger.log(
                SecurityEvent.RATE_LIMITED,
                identity=identity,
                ip_address=ip_address,
            )
            raise

    def admin_login(
        self,
        email: str,
        password: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthenticatedUser:
        """Log a staff member in with email and password.

        Unknown email and wrong password fail identically.

        Raises:
            InvalidCredentialsError: If the pair does not match an active admin.
            RateLimitedError: If too many attempts were made for this email.
        """
        email = email.lower().strip()
        self._check_limit(self._login_limiter, email, ip_address)

        found = self._auth_db.get_admin_credentials(email)
        user, password_hash = found if found else (None, None)

        if user is None or not user.is_active or not verify_password(password, password_hash):
            self._security_logger.log(
                SecurityEvent.ADMIN_LOGIN_FAILED,
                identity=email,
                user_id=user.id if user else None,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise InvalidCredentialsError("Invalid credentials")

        session = self._session_manager.create_session(user.id, UserRole.ADMIN)
        self._auth_db.update_last_login(user.id)
        self._login_limiter.reset_rate_limit(email)

        self._security_logger.log(
            SecurityEvent.ADMIN_LOGIN_SUCCEEDED,
            identity=email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._security_logger.log(
            SecurityEvent.SESSION_CREATED,
            identity=email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return AuthenticatedUser(user=user, session=session)

    def send_otp(
        self,
        phone: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> OtpChallenge:
        """Issue a login code for a phone number.

        Flow:
        1. Validate and normalize the phone
        2. Check per-phone rate limit
        3. Generate code, store its digest with a TTL
        4. Hand the code to the SMS client
        5. Log security event

        Raises:
            InvalidPhoneError: If the phone is not an Indian mobile number.
            RateLimitedError: If too many codes were requested.
        """
        phone = normalize_phone(phone)
        self._check_limit(self._otp_send_limiter, phone, ip_address)

        code = generate_otp(self._config.otp_length)
        self._otp_store.put(phone, code)

        self._sms_client.send_otp(phone, code, self._config.otp_expiry_minutes)

        self._security_logger.log(
            SecurityEvent.OTP_REQUESTED,
            identity=phone,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return OtpChallenge(
            phone=phone,
            expires_in_seconds=self._otp_store.expiry_seconds,
            otp=code if self._config.expose_otp_in_response else None,
        )

    def verify_otp(
        self,
        phone: str,
        otp: str,
        name: str | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthenticatedUser:
        """Verify a login code and create a customer session.

        A phone with no account gets one, which needs a name. The name check
        runs before the code is consumed so the customer can retry with it.

        Raises:
            InvalidPhoneError: If the phone is not an Indian mobile number.
            ValidationError: If the phone is new and no name was given.
            InvalidOtpError: If the code is missing, expired, wrong, or used.
            RateLimitedError: If too many codes were tried for this phone.
        """
        phone = normalize_phone(phone)
        self._check_limit(self._login_limiter, phone, ip_address)
        user = self._auth_db.get_customer_by_phone(phone)

        if user is None and not (name and name.strip()):
            raise ValidationError("Name is required for new customers")

        if not self._otp_store.consume(phone, otp.strip()):
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                identity=phone,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise InvalidOtpError("Invalid or expired OTP")

        is_new_user = user is None
        if is_new_user:
            user = self._auth_db.create_customer(name.strip(), phone)
            self._security_logger.log(
                SecurityEvent.CUSTOMER_CREATED,
                identity=phone,
                user_id=user.id,
                ip_address=ip_address,
            )

        session = self._session_manager.create_session(user.id, UserRole.CUSTOMER)
        self._auth_db.update_last_login(user.id)
        self._otp_send_limiter.reset_rate_limit(phone)
        self._login_limiter.reset_rate_limit(phone)

        self._security_logger.log(
            SecurityEvent.OTP_VERIFIED,
            identity=phone,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._security_logger.log(
            SecurityEvent.SESSION_CREATED,
            identity=phone,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return AuthenticatedUser(user=user, session=session, is_new_user=is_new_user)

    def logout(self, session_token: str, ip_address: str | None) -> None:
        """Revoke session (logout).

        Safe to call with invalid token.
        """
        try:
            user_id = self._session_manager.validate_session(session_token).user_id
        except SessionExpiredError:
            user_id = None

        self._session_manager.revoke_session(session_token)

        self._security_logger.log(
            SecurityEvent.SESSION_REVOKED,
            user_id=user_id,
            ip_address=ip_address,
        )

    def validate_session(self, token: str) -> Session:
        """Validate session token.

        Raises:
            SessionExpiredError: If session invalid or expired.
        """
        return self._session_manager.validate_session(token)

    def get_user(self, session: Session) -> User | None:
        """Account behind a session, or None if it was removed."""
        return self._auth_db.get_user_by_id(session.user_id)
