"""Auth settings: login codes, sessions, cookies and attempt limits."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Auth tunables with bounds.

    Short durations are in minutes, session lifetime in hours.
    """

    otp_expiry_minutes: int = Field(default=5, ge=1, le=30, description="Lifetime of a login code")
    otp_length: int = Field(default=6, ge=4, le=8, description="Digits per login code")
    expose_otp_in_response: bool = Field(
        default=False,
        description="Return the code from /otp/send; for environments without an SMS gateway",
    )
    sms_sender_name: str = Field(default="RMW", max_length=11, description="Sender shown on OTP messages")

    session_expiry_hours: int = Field(default=168, ge=1, le=2160, description="Sliding session lifetime")
    session_cookie_name: str = Field(default="rmw_session")
    session_cookie_secure: bool = Field(default=True, description="Send the cookie over HTTPS only")

    rate_limit_attempts: int = Field(default=5, ge=1, le=20, description="Attempts per identity per window")
    rate_limit_window_minutes: int = Field(default=15, ge=5, le=60)

    @property
    def otp_expiry_seconds(self) -> int:
        return self.otp_expiry_minutes * 60
