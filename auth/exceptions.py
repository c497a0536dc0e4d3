"""Auth failures.

Each error carries the message clients are shown. Internal detail
(which half of a credential pair was wrong, why a code failed) stays in
str(exc) for logs only.
"""


class AuthError(Exception):
    public_message = "Authentication failed"


class InvalidCredentialsError(AuthError):
    """Admin email/password mismatch, raised alike for unknown emails and wrong passwords."""

    public_message = "Invalid credentials"


class InvalidOtpError(AuthError):
    """Login code missing, expired, wrong or already used."""

    public_message = "Invalid or expired OTP"


class InvalidPhoneError(AuthError, ValueError):
    """Not a 10-digit Indian mobile number."""

    public_message = "Invalid phone number"


class SessionExpiredError(AuthError):
    """Unknown, revoked or expired session token, or a deactivated account."""

    public_message = "Session has expired"


class RateLimitedError(AuthError):
    """Too many attempts in the current window."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")

    @property
    def public_message(self) -> str:
        return f"Too many requests. Please wait {self.retry_after_seconds} seconds."
