"""Attempt throttling for OTP sends, OTP verification and admin login.

Counters live in Valkey. Every attempt re-arms the window, so a client
that keeps hammering keeps itself locked out.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-identity attempt counter for one auth flow.

    `scope` ("otp_send", "login", ...) gives each flow its own budget.
    Identities are phones or admin emails, compared case-insensitively.
    """

    KEY_PREFIX = "ratelimit:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig, scope: str):
        self._valkey = valkey
        self._max_attempts = config.rate_limit_attempts
        self._window_seconds = config.rate_limit_window_minutes * 60
        self._scope = scope

    @property
    def scope(self) -> str:
        return self._scope

    def _key(self, identity: str) -> str:
        return f"{self.KEY_PREFIX}{self._scope}:{identity.strip().lower()}"

    def check_rate_limit(self, identity: str) -> None:
        """Count an attempt.

        Raises:
            RateLimitedError: once attempts exceed the budget, carrying the
                seconds left in the window.
        """
        key = self._key(identity)
        attempts = self._valkey.incr_with_expiry(key, self._window_seconds)

        if attempts > self._max_attempts:
            raise RateLimitedError(retry_after_seconds=max(self._valkey.ttl(key), 1))

    def reset_rate_limit(self, identity: str) -> None:
        """Forget attempts after a successful login."""
        self._valkey.delete(self._key(identity))

    def get_remaining_attempts(self, identity: str) -> int:
        used = self._valkey.get(self._key(identity))
        if used is None:
            return self._max_attempts
        return max(self._max_attempts - int(used), 0)
