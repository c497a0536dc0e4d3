"""
SMS delivery for one-time passwords.

Delivery is not wired to a carrier. The logging client writes the message
to the application log so development and staging can complete the OTP
flow end to end.
"""

import logging

logger = logging.getLogger(__name__)


class LoggingSmsClient:
    """SMS client that logs instead of sending."""

    def __init__(self, sender_name: str = "RMW"):
        self.sender_name = sender_name

    def send_otp(self, phone: str, code: str, expiry_minutes: int) -> None:
        """Log the verification code for the given phone."""
        logger.info(
            "[%s] OTP for %s: %s (valid %d minutes)",
            self.sender_name, phone, code, expiry_minutes,
        )
