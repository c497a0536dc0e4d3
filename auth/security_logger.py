"""Auth event trail.

Every OTP request, login attempt and session change is appended to the
security_events table and echoed to the application log. Failures log
at WARNING so they surface without querying the table.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    OTP_REQUESTED = "otp_requested"
    OTP_VERIFIED = "otp_verified"
    OTP_FAILED = "otp_failed"
    ADMIN_LOGIN_SUCCEEDED = "admin_login_succeeded"
    ADMIN_LOGIN_FAILED = "admin_login_failed"
    SESSION_CREATED = "session_created"
    SESSION_REVOKED = "session_revoked"
    RATE_LIMITED = "rate_limited"
    CUSTOMER_CREATED = "customer_created"


FAILURE_EVENTS = frozenset({
    SecurityEvent.OTP_FAILED,
    SecurityEvent.ADMIN_LOGIN_FAILED,
    SecurityEvent.RATE_LIMITED,
})


class SecurityLogger:
    """Writes and queries security_events rows."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        identity: str | None = None,
        user_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record an auth event. `identity` is the phone or admin email involved."""
        level = logging.WARNING if event in FAILURE_EVENTS else logging.INFO
        logger.log(level, "Security event %s (identity=%s, ip=%s)", event.value, identity, ip_address)

        self._db.execute(
            """INSERT INTO security_events
               (event_type, identity, user_id, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)""",
            (
                event.value,
                identity,
                str(user_id) if user_id else None,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )

    def get_recent_events(
        self,
        identity: str | None = None,
        user_id: UUID | None = None,
        event_type: SecurityEvent | None = None,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Newest-first events matching every filter given."""
        filters = [
            ("identity = %s", identity),
            ("user_id = %s", str(user_id) if user_id else None),
            ("event_type = %s", event_type.value if event_type else None),
            ("created_at >= %s", since),
        ]
        active = [(clause, value) for clause, value in filters if value is not None]
        where = " AND ".join(clause for clause, _ in active) or "TRUE"

        return self._db.execute(
            f"""SELECT id, event_type, identity, user_id, ip_address, user_agent, details, created_at
                FROM security_events
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s""",
            tuple(value for _, value in active) + (limit,),
        )
