"""Tests for AuthService - core auth orchestration."""

from unittest.mock import Mock

import pytest

from auth.service import AuthService, normalize_phone
from auth.database import AuthDatabase
from auth.otp_store import OtpStore
from auth.passwords import hash_password
from auth.session import SessionManager
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.config import AuthConfig
from auth.types import User, UserRole
from auth.exceptions import (
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidPhoneError,
    RateLimitedError,
    SessionExpiredError,
)
from clients.sms_client import LoggingSmsClient
from core.exceptions import ValidationError


@pytest.fixture(scope="module")
def admin_password_hash():
    """Hashed once per module; bcrypt is deliberately slow."""
    return hash_password("workshop-secret")


@pytest.fixture
def config():
    """Test config with a small rate limit."""
    return AuthConfig(
        session_expiry_hours=1,
        rate_limit_attempts=3,
        rate_limit_window_minutes=5,
    )


@pytest.fixture
def admin_user(admin_user_id, rows):
    return User(
        id=admin_user_id, name="Workshop Admin", email="admin@workshop.in",
        role=UserRole.ADMIN, created_at=rows.NOW,
    )


@pytest.fixture
def customer_user(customer_user_id, rows):
    return User(
        id=customer_user_id, name="Ravi Kumar", phone="9876543210",
        role=UserRole.CUSTOMER, created_at=rows.NOW,
    )


@pytest.fixture
def auth_db():
    return Mock(spec=AuthDatabase)


@pytest.fixture
def sms_client():
    """Mock SMS client - captures codes instead of logging them."""
    return Mock(spec=LoggingSmsClient)


@pytest.fixture
def security_logger():
    return Mock(spec=SecurityLogger)


@pytest.fixture
def auth_service(valkey, config, auth_db, sms_client, security_logger):
    """AuthService with in-memory Valkey and mocked persistence."""
    return AuthService(
        config=config,
        auth_db=auth_db,
        session_manager=SessionManager(valkey, config),
        otp_store=OtpStore(valkey, expiry_seconds=300),
        otp_send_limiter=RateLimiter(valkey, config, scope="otp_send"),
        login_limiter=RateLimiter(valkey, config, scope="login"),
        sms_client=sms_client,
        security_logger=security_logger,
    )


def logged_events(security_logger) -> list[SecurityEvent]:
    return [c.args[0] for c in security_logger.log.call_args_list]


def sent_code(sms_client) -> str:
    return sms_client.send_otp.call_args.args[1]


class TestNormalizePhone:

    @pytest.mark.parametrize("raw", [
        "9876543210", "+91 98765 43210", "+91-98765-43210", "919876543210", "09876543210",
    ])
    def test_accepts_common_forms(self, raw):
        assert normalize_phone(raw) == "9876543210"

    @pytest.mark.parametrize("raw", ["12345", "5876543210", "", "not a phone"])
    def test_rejects_non_mobile(self, raw):
        with pytest.raises(InvalidPhoneError):
            normalize_phone(raw)


class TestAdminLogin:

    def test_valid_credentials_create_admin_session(
        self, auth_service, auth_db, security_logger, admin_user, admin_password_hash
    ):
        auth_db.get_admin_credentials.return_value = (admin_user, admin_password_hash)

        result = auth_service.admin_login(" Admin@Workshop.in ", "workshop-secret", "10.0.0.1", "pytest")

        assert result.user.id == admin_user.id
        assert result.session.role == UserRole.ADMIN
        auth_db.get_admin_credentials.assert_called_once_with("admin@workshop.in")
        auth_db.update_last_login.assert_called_once_with(admin_user.id)
        assert SecurityEvent.ADMIN_LOGIN_SUCCEEDED in logged_events(security_logger)

    def test_wrong_password(self, auth_service, auth_db, security_logger, admin_user, admin_password_hash):
        auth_db.get_admin_credentials.return_value = (admin_user, admin_password_hash)

        with pytest.raises(InvalidCredentialsError):
            auth_service.admin_login("admin@workshop.in", "guess", None, None)

        assert logged_events(security_logger) == [SecurityEvent.ADMIN_LOGIN_FAILED]

    def test_unknown_email_fails_identically(self, auth_service, auth_db):
        auth_db.get_admin_credentials.return_value = None

        with pytest.raises(InvalidCredentialsError, match="Invalid credentials"):
            auth_service.admin_login("nobody@workshop.in", "workshop-secret", None, None)

    def test_inactive_admin_rejected(self, auth_service, auth_db, admin_user, admin_password_hash):
        inactive = admin_user.model_copy(update={"is_active": False})
        auth_db.get_admin_credentials.return_value = (inactive, admin_password_hash)

        with pytest.raises(InvalidCredentialsError):
            auth_service.admin_login("admin@workshop.in", "workshop-secret", None, None)

    def test_rate_limited_after_repeated_failures(self, auth_service, auth_db, security_logger, config):
        auth_db.get_admin_credentials.return_value = None
        for _ in range(config.rate_limit_attempts):
            with pytest.raises(InvalidCredentialsError):
                auth_service.admin_login("admin@workshop.in", "guess", None, None)

        with pytest.raises(RateLimitedError):
            auth_service.admin_login("admin@workshop.in", "guess", None, None)

        assert logged_events(security_logger)[-1] == SecurityEvent.RATE_LIMITED


class TestSendOtp:

    def test_sends_code_and_hides_it(self, auth_service, sms_client, security_logger):
        challenge = auth_service.send_otp("+91 98765 43210", "10.0.0.1", None)

        assert challenge.phone == "9876543210"
        assert challenge.expires_in_seconds == 300
        assert challenge.otp is None
        phone, code, minutes = sms_client.send_otp.call_args.args
        assert phone == "9876543210"
        assert len(code) == 6
        assert minutes == 5
        assert logged_events(security_logger) == [SecurityEvent.OTP_REQUESTED]

    def test_exposes_code_in_development(self, valkey, auth_db, sms_client, security_logger):
        config = AuthConfig(expose_otp_in_response=True)
        service = AuthService(
            config, auth_db, SessionManager(valkey, config), OtpStore(valkey),
            RateLimiter(valkey, config, "otp_send"), RateLimiter(valkey, config, "login"),
            sms_client, security_logger,
        )

        challenge = service.send_otp("9876543210", None, None)

        assert challenge.otp == sent_code(sms_client)

    def test_invalid_phone_rejected(self, auth_service, sms_client):
        with pytest.raises(InvalidPhoneError):
            auth_service.send_otp("12345", None, None)

        sms_client.send_otp.assert_not_called()

    def test_rate_limited(self, auth_service, config):
        for _ in range(config.rate_limit_attempts):
            auth_service.send_otp("9876543210", None, None)

        with pytest.raises(RateLimitedError):
            auth_service.send_otp("9876543210", None, None)


class TestVerifyOtp:

    def test_existing_customer_logs_in(self, auth_service, auth_db, sms_client, security_logger, customer_user):
        auth_db.get_customer_by_phone.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)

        result = auth_service.verify_otp("9876543210", sent_code(sms_client), None, None, None)

        assert result.user.id == customer_user.id
        assert result.is_new_user is False
        assert result.session.role == UserRole.CUSTOMER
        auth_db.create_customer.assert_not_called()
        assert SecurityEvent.OTP_VERIFIED in logged_events(security_logger)

    def test_new_customer_created_with_name(self, auth_service, auth_db, sms_client, customer_user):
        auth_db.get_customer_by_phone.return_value = None
        auth_db.create_customer.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)

        result = auth_service.verify_otp("9876543210", sent_code(sms_client), "  Ravi Kumar ", None, None)

        assert result.is_new_user is True
        auth_db.create_customer.assert_called_once_with("Ravi Kumar", "9876543210")

    def test_new_customer_without_name_keeps_code(self, auth_service, auth_db, sms_client, customer_user):
        auth_db.get_customer_by_phone.return_value = None
        auth_db.create_customer.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)
        code = sent_code(sms_client)

        with pytest.raises(ValidationError, match="Name is required"):
            auth_service.verify_otp("9876543210", code, None, None, None)

        result = auth_service.verify_otp("9876543210", code, "Ravi", None, None)
        assert result.is_new_user is True

    def test_wrong_code(self, auth_service, auth_db, security_logger, customer_user):
        auth_db.get_customer_by_phone.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)

        with pytest.raises(InvalidOtpError):
            auth_service.verify_otp("9876543210", "000000x", None, None, None)

        assert SecurityEvent.OTP_FAILED in logged_events(security_logger)

    def test_code_is_single_use(self, auth_service, auth_db, sms_client, customer_user):
        auth_db.get_customer_by_phone.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)
        code = sent_code(sms_client)
        auth_service.verify_otp("9876543210", code, None, None, None)

        with pytest.raises(InvalidOtpError):
            auth_service.verify_otp("9876543210", code, None, None, None)

    def test_success_resets_send_limit(self, auth_service, auth_db, sms_client, customer_user, config):
        auth_db.get_customer_by_phone.return_value = customer_user
        for _ in range(config.rate_limit_attempts):
            auth_service.send_otp("9876543210", None, None)

        auth_service.verify_otp("9876543210", sent_code(sms_client), None, None, None)

        auth_service.send_otp("9876543210", None, None)


class TestSessions:

    def test_logout_revokes_and_logs(self, auth_service, auth_db, sms_client, security_logger, customer_user):
        auth_db.get_customer_by_phone.return_value = customer_user
        auth_service.send_otp("9876543210", None, None)
        token = auth_service.verify_otp("9876543210", sent_code(sms_client), None, None, None).session.token

        auth_service.logout(token, "10.0.0.1")

        with pytest.raises(SessionExpiredError):
            auth_service.validate_session(token)
        assert logged_events(security_logger)[-1] == SecurityEvent.SESSION_REVOKED
        assert security_logger.log.call_args.kwargs["user_id"] == customer_user.id

    def test_logout_with_unknown_token(self, auth_service, security_logger):
        auth_service.logout("never-issued", None)

        assert security_logger.log.call_args.kwargs["user_id"] is None

    def test_get_user_reads_account(self, auth_service, auth_db, admin_user, admin_password_hash):
        auth_db.get_admin_credentials.return_value = (admin_user, admin_password_hash)
        auth_db.get_user_by_id.return_value = admin_user
        session = auth_service.admin_login("admin@workshop.in", "workshop-secret", None, None).session

        assert auth_service.get_user(session) == admin_user
        auth_db.get_user_by_id.assert_called_once_with(admin_user.id)
