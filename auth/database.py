"""Database operations for authentication.

Reads and writes the users table. Staff accounts carry a bcrypt password
hash; customer accounts are keyed by phone and have none.
"""

from uuid import UUID

from clients.postgres_client import PostgresClient
from auth.types import User, UserRole
from utils.timezone import now_utc

_USER_COLUMNS = "id, name, email, phone, role, is_active, created_at, last_login_at"


class AuthDatabase:
    """Database operations for authentication."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (str(user_id),),
        )
        if row is None:
            return None
        return User.model_validate(row)

    def get_customer_by_phone(self, phone: str) -> User | None:
        """Find a customer account by phone number."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE phone = %s AND role = %s",
            (phone, UserRole.CUSTOMER.value),
        )
        if row is None:
            return None
        return User.model_validate(row)

    def get_admin_credentials(self, email: str) -> tuple[User, str | None] | None:
        """Find a staff account by email (case-insensitive).

        Returns:
            Tuple of (user, password_hash), or None if no admin has that email.
        """
        row = self._db.execute_single(
            f"""SELECT {_USER_COLUMNS}, password_hash
                FROM users WHERE email = lower(%s) AND role = %s""",
            (email, UserRole.ADMIN.value),
        )
        if row is None:
            return None
        password_hash = row.pop("password_hash")
        return User.model_validate(row), password_hash

    def create_customer(self, name: str, phone: str) -> User:
        """Create a customer account for a verified phone number."""
        rows = self._db.execute_returning(
            f"""INSERT INTO users (name, phone, role)
                VALUES (%s, %s, %s)
                RETURNING {_USER_COLUMNS}""",
            (name, phone, UserRole.CUSTOMER.value),
        )
        return User.model_validate(rows[0])

    def update_last_login(self, user_id: UUID) -> None:
        """Update last_login_at to current time."""
        self._db.execute_returning(
            "UPDATE users SET last_login_at = %s WHERE id = %s RETURNING id",
            (now_utc(), str(user_id)),
        )
