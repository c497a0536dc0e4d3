"""
Human-readable document numbers: RMW-2025-0001, JC-2025-0001, INV-2025-0001.

Sequences come from an atomic per-(kind, year) counter row in
`document_sequences`, so concurrent creators never draw the same number and
numbering restarts each calendar year. Identifier columns are UNIQUE as a
backstop; create_with_identifier retries an insert that trips that
constraint with a freshly drawn number.
"""

import logging
from enum import Enum
from typing import Callable, TypeVar

from clients.postgres_client import PostgresClient, unique_violation_constraint
from core.exceptions import ConflictError
from utils.timezone import local_year

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IdentifierKind(Enum):
    """Document kind and its number prefix."""

    BOOKING = "RMW"
    JOB_CARD = "JC"
    INVOICE = "INV"

    @property
    def prefix(self) -> str:
        return self.value


def format_identifier(kind: IdentifierKind, year: int, sequence: int) -> str:
    """`<PREFIX>-<year>-<seq>`, seq zero-padded to at least four digits."""
    if sequence < 1:
        raise ValueError("Sequence numbers start at 1")
    return f"{kind.prefix}-{year}-{sequence:04d}"


class IdentifierGenerator:
    """Allocates document numbers from the database counter."""

    def __init__(
        self,
        postgres: PostgresClient,
        timezone_name: str = "Asia/Kolkata",
        max_attempts: int = 3,
    ):
        self.postgres = postgres
        self.timezone_name = timezone_name
        self.max_attempts = max_attempts

    def next_sequence(self, kind: IdentifierKind, year: int) -> int:
        """Atomically increment and return the counter for (kind, year)."""
        return self.postgres.execute_scalar(
            """
            INSERT INTO document_sequences (kind, year, last_value)
            VALUES (%s, %s, 1)
            ON CONFLICT (kind, year)
            DO UPDATE SET last_value = document_sequences.last_value + 1
            RETURNING last_value
            """,
            (kind.name.lower(), year)
        )

    def next_identifier(self, kind: IdentifierKind) -> str:
        """
        Draw the next number for a document kind.

        The year is the current calendar year in the business timezone.
        """
        year = local_year(self.timezone_name)
        return format_identifier(kind, year, self.next_sequence(kind, year))

    def create_with_identifier(
        self,
        kind: IdentifierKind,
        insert: Callable[[str], T],
        constraint: str,
    ) -> T:
        """
        Run an insert with a fresh identifier, retrying on a number clash.

        Args:
            kind: Document kind to number
            insert: Performs the INSERT given the identifier
            constraint: Name of the UNIQUE constraint on the identifier column

        Returns:
            Whatever insert returns

        Raises:
            ConflictError: Every attempt collided
            Exception: Any other database error is re-raised untouched
        """
        for attempt in range(1, self.max_attempts + 1):
            identifier = self.next_identifier(kind)
            try:
                return insert(identifier)
            except Exception as e:
                if unique_violation_constraint(e) != constraint:
                    raise
                logger.warning(
                    "Identifier %s already taken (attempt %d/%d)",
                    identifier, attempt, self.max_attempts
                )

        raise ConflictError(f"Could not allocate a unique {kind.name.lower()} number")
