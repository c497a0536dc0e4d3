"""
Append-only change log for workshop records.

Catalog entries, bookings, job cards and invoices write one row per
mutation. Rows are attributed to the acting admin when there is one;
public bookings and cancellations carry no user.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc
from utils.user_context import get_current_user_id


class AuditAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditEntity(Enum):
    """Record kinds that keep an audit trail. Values match audit_log.entity_type."""

    SERVICE = "service"
    BOOKING = "booking"
    JOB_CARD = "job_card"
    INVOICE = "invoice"


# Serialized Decimals keep their scale ("2500" vs "2500.00"); compare by value.
AMOUNT_FIELDS = frozenset({
    "base_price", "labour_charges", "estimated_total", "final_total",
    "subtotal", "discount_percent", "discount_amount", "taxable_amount",
    "cgst_percent", "cgst_amount", "sgst_percent", "sgst_amount",
    "total_tax", "grand_total", "round_off", "final_amount",
    "amount_paid", "balance_due",
})

# Status moves already show up as a "status" change.
DEFAULT_EXCLUDED = frozenset({"updated_at", "status_history"})


def _same_amount(old: Any, new: Any) -> bool:
    try:
        return Decimal(str(old)) == Decimal(str(new))
    except (InvalidOperation, ValueError):
        return False


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | frozenset[str] | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Field-level diff of two model_dump(mode="json") snapshots.

    Returns {field: {"old": ..., "new": ...}} for every field whose value
    differs; an empty dict when nothing changed. Amount fields are
    compared numerically.
    """
    exclude = DEFAULT_EXCLUDED if exclude_fields is None else exclude_fields
    changes = {}

    for key in sorted(set(old) | set(new)):
        if key in exclude:
            continue

        before, after = old.get(key), new.get(key)
        if before == after:
            continue
        if key in AMOUNT_FIELDS and before is not None and after is not None and _same_amount(before, after):
            continue

        changes[key] = {"old": before, "new": after}

    return changes


class AuditLogger:
    """
    Writes audit_log rows through PostgresClient.

    Snapshots should come from model_dump(mode="json") so UUIDs, Decimals
    and datetimes are already JSON strings:

        audit.log_change(AuditEntity.JOB_CARD, card.id, AuditAction.CREATE,
                         {"created": card.model_dump(mode="json")})
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: AuditEntity,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: UUID | None = None,
    ) -> None:
        """
        Record one mutation.

        `changes` is {"created": snapshot} for CREATE, the compute_changes()
        diff for UPDATE and {"deleted": snapshot} for DELETE. The acting user
        defaults to the request's user context.
        """
        self.postgres.execute(
            """
            INSERT INTO audit_log (id, user_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                user_id if user_id is not None else get_current_user_id(),
                entity_type.value,
                entity_id,
                action.value,
                Json(changes),
                now_utc(),
            ),
        )

    def get_entity_history(self, entity_type: AuditEntity, entity_id: UUID) -> list[dict[str, Any]]:
        """Audit rows for one record, newest first."""
        return self.postgres.execute(
            """
            SELECT id, user_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (entity_type.value, entity_id),
        )
