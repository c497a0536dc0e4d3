"""One-time password store.

One outstanding code per phone number, kept in Valkey under a TTL so
expired codes disappear on their own. Only a SHA-256 digest is stored.
Issuing a new code replaces the previous one.
"""

import hashlib
import hmac
import secrets

from clients.valkey_client import ValkeyClient


def generate_otp(length: int = 6) -> str:
    """Random numeric code from the OS CSPRNG."""
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def _digest(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


class OtpStore:
    """Expiring phone -> code-digest map with single-use consumption."""

    KEY_PREFIX = "otp:"

    def __init__(self, valkey: ValkeyClient, expiry_seconds: int = 300):
        self._valkey = valkey
        self._expiry_seconds = expiry_seconds

    @property
    def expiry_seconds(self) -> int:
        return self._expiry_seconds

    def _key(self, phone: str) -> str:
        return f"{self.KEY_PREFIX}{phone}"

    def put(self, phone: str, code: str) -> None:
        """Store a code for phone, replacing any earlier one."""
        self._valkey.set(self._key(phone), _digest(code), expire_seconds=self._expiry_seconds)

    def consume(self, phone: str, code: str) -> bool:
        """
        Check a code and use it up.

        Returns True exactly once per issued code: for the first caller
        whose delete removes the matching entry. A wrong code leaves the
        stored one in place.
        """
        stored = self._valkey.get(self._key(phone))
        if stored is None:
            return False
        if not hmac.compare_digest(stored, _digest(code)):
            return False
        return self._valkey.delete(self._key(phone))
