"""Login sessions for admins and customers.

A session is an opaque random token mapped to a JSON record in Valkey.
The key's TTL mirrors the session expiry, and every successful
validation pushes both forward.
"""

import secrets
from datetime import timedelta
from uuid import UUID

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import SessionExpiredError
from auth.types import Session, UserRole
from utils.timezone import now_utc


class SessionManager:
    """Creates, validates (with sliding expiry) and revokes session tokens."""

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._lifetime = timedelta(hours=config.session_expiry_hours)

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    def _save(self, session: Session) -> Session:
        # The token is the key; it is not repeated in the value.
        self._valkey.set_json(
            self._key(session.token),
            session.model_dump(mode="json", exclude={"token"}),
            expire_seconds=int(self._lifetime.total_seconds()),
        )
        return session

    def create_session(self, user_id: UUID, role: UserRole) -> Session:
        now = now_utc()
        return self._save(Session(
            token=secrets.token_urlsafe(32),
            user_id=user_id,
            role=role,
            created_at=now,
            expires_at=now + self._lifetime,
            last_activity_at=now,
        ))

    def validate_session(self, token: str) -> Session:
        """Session for token, with its expiry slid forward.

        Raises:
            SessionExpiredError: unknown, revoked or expired token.
        """
        stored = self._valkey.get_json(self._key(token))
        if stored is None:
            raise SessionExpiredError("Session not found or expired")

        session = Session.model_validate({**stored, "token": token})

        now = now_utc()
        if session.expires_at < now:
            # Key outlived its recorded expiry
            self.revoke_session(token)
            raise SessionExpiredError("Session expired")

        return self._save(session.model_copy(update={
            "expires_at": now + self._lifetime,
            "last_activity_at": now,
        }))

    def revoke_session(self, token: str) -> None:
        """Logout. Unknown tokens are ignored."""
        self._valkey.delete(self._key(token))
