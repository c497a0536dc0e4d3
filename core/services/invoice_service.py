"""
Invoice service for billing and payments.

Invoices are always generated from a job card, at most one per card. They
freeze the card's line items and tax breakdown at generation time; later
job card edits never reach an existing invoice. Only payment fields change
afterwards.
"""

import logging
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, unique_violation_constraint
from core.audit import AuditLogger, AuditAction, AuditEntity, compute_changes
from core.billing import calculate_totals, derive_payment_state, freeze_part_line, freeze_service_line
from core.config import WorkshopConfig
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.identifiers import IdentifierGenerator, IdentifierKind
from core.models import (
    Invoice,
    InvoiceCreate,
    InvoicePaymentUpdate,
    PaymentStatus,
    VehicleDetails,
)
from core.services.job_card_service import JobCardService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

INVOICE_NUMBER_CONSTRAINT = "invoices_invoice_number_key"
JOB_CARD_CONSTRAINT = "invoices_job_card_id_key"


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        job_cards: JobCardService,
        identifiers: IdentifierGenerator,
        config: WorkshopConfig | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.job_cards = job_cards
        self.identifiers = identifiers
        self.config = config or WorkshopConfig()

    def create_from_job_card(self, data: InvoiceCreate) -> Invoice:
        """
        Generate the invoice for a job card.

        Args:
            data: Job card ID plus optional discount/tax percents, address,
                notes and terms

        Returns:
            Created invoice with payment status PENDING

        Raises:
            NotFoundError: If job card not found
            ConflictError: If the job card already has an invoice
            ValidationError: If the job card has nothing to bill
        """
        job_card = self.job_cards.get_by_id(data.job_card_id)
        if job_card is None:
            raise NotFoundError("Job card", data.job_card_id)

        if self.get_by_job_card(job_card.id) is not None:
            raise ConflictError("Invoice already exists for this job card")

        services = [freeze_service_line(s) for s in job_card.services_requested]
        parts = [freeze_part_line(p) for p in job_card.parts_used]

        cgst = data.cgst_percent if data.cgst_percent is not None else self.config.default_cgst_percent
        sgst = data.sgst_percent if data.sgst_percent is not None else self.config.default_sgst_percent

        totals = calculate_totals(
            services,
            parts,
            labour_charges=job_card.labour_charges,
            discount_percent=data.discount_percent,
            cgst_percent=cgst,
            sgst_percent=sgst,
        )

        vehicle = VehicleDetails(
            type=job_card.vehicle_type,
            brand=job_card.vehicle_brand,
            model=job_card.vehicle_model,
            number=job_card.vehicle_number,
            color=job_card.vehicle_color,
        )

        invoice_id = uuid4()
        now = now_utc()

        def insert(invoice_number: str) -> dict:
            return self.postgres.execute_returning(
                """
                INSERT INTO invoices (
                    id, invoice_number, job_card_id,
                    customer_name, phone, email, address, vehicle_details,
                    services, parts, labour_charges,
                    subtotal, discount_percent, discount_amount, taxable_amount,
                    cgst_percent, cgst_amount, sgst_percent, sgst_amount,
                    total_tax, grand_total, round_off, final_amount,
                    payment_status, amount_paid, balance_due,
                    notes, terms_and_conditions, generated_at,
                    created_at, updated_at
                ) VALUES (
                    %s, %s, %s,
                    %s, %s, %s, %s, %s,
                    %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s,
                    %s, %s, %s,
                    %s, %s
                )
                RETURNING *
                """,
                (
                    invoice_id, invoice_number, job_card.id,
                    job_card.customer_name, job_card.phone, job_card.email, data.address,
                    Json(vehicle.model_dump(mode="json")),
                    Json([s.model_dump(mode="json") for s in services]),
                    Json([p.model_dump(mode="json") for p in parts]),
                    totals.labour_charges,
                    totals.subtotal, totals.discount_percent, totals.discount_amount, totals.taxable_amount,
                    totals.cgst_percent, totals.cgst_amount, totals.sgst_percent, totals.sgst_amount,
                    totals.total_tax, totals.grand_total, totals.round_off, totals.final_amount,
                    PaymentStatus.PENDING.value, 0, totals.final_amount,
                    data.notes, data.terms_and_conditions or self.config.default_terms, now,
                    now, now
                )
            )[0]

        try:
            row = self.identifiers.create_with_identifier(
                IdentifierKind.INVOICE, insert, INVOICE_NUMBER_CONSTRAINT
            )
        except Exception as e:
            # Lost a race with a concurrent generation for the same card
            if unique_violation_constraint(e) == JOB_CARD_CONSTRAINT:
                raise ConflictError("Invoice already exists for this job card") from e
            raise

        invoice = Invoice.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={
                "created": {
                    "job_card_id": str(job_card.id),
                    "invoice_number": invoice.invoice_number,
                    "subtotal": str(totals.subtotal),
                    "discount_percent": str(totals.discount_percent),
                    "final_amount": str(totals.final_amount)
                }
            }
        )

        logger.info(
            "Invoice %s generated for job card %s",
            invoice.invoice_number, job_card.job_card_number
        )
        return invoice

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        """
        Get invoice by ID.

        Returns:
            Invoice if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE id = %s",
            (invoice_id,)
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def get_by_job_card(self, job_card_id: UUID) -> Invoice | None:
        """Invoice generated from a job card, if any."""
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE job_card_id = %s",
            (job_card_id,)
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def list_invoices(
        self,
        payment_status: PaymentStatus | None = None,
        phone: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Invoice]:
        """
        List invoices with optional filters.

        Returns:
            Invoices ordered by generation time DESC
        """
        conditions = []
        params: list = []
        if payment_status:
            conditions.append("payment_status = %s")
            params.append(payment_status.value)
        if phone:
            conditions.append("phone = %s")
            params.append(phone)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM invoices
            {where}
            ORDER BY generated_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )

        return [Invoice.model_validate(row) for row in rows]

    def update_payment(self, invoice_id: UUID, data: InvoicePaymentUpdate) -> Invoice:
        """
        Record payment details on an invoice.

        The amount paid decides the status: at or above the final amount it
        is PAID (and paid_at is stamped the first time), above zero it is
        PARTIAL, and only at zero does a requested status apply. An update
        that leaves the amount alone and requests no status keeps the stored
        status.

        Args:
            invoice_id: Invoice UUID
            data: Any of payment_status, payment_method, amount_paid

        Returns:
            Updated invoice

        Raises:
            NotFoundError: If invoice not found
            ValidationError: If no payment field was supplied
        """
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise ValidationError("No valid fields to update")

        current = self.get_by_id(invoice_id)
        if current is None:
            raise NotFoundError("Invoice", invoice_id)

        if data.amount_paid is not None:
            # A new amount re-derives the status from scratch
            amount_paid, kept_status = data.amount_paid, None
        else:
            amount_paid, kept_status = current.amount_paid, current.payment_status
        now = now_utc()

        payment_status, balance_due, paid_at = derive_payment_state(
            current.final_amount, amount_paid, data.payment_status, current.paid_at, now,
            current_status=kept_status,
        )

        row = self.postgres.execute_returning(
            """
            UPDATE invoices
            SET payment_status = %s, payment_method = %s, amount_paid = %s,
                balance_due = %s, paid_at = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (
                payment_status.value,
                data.payment_method if data.payment_method is not None else current.payment_method,
                amount_paid, balance_due, paid_at, now, invoice_id
            )
        )[0]

        updated = Invoice.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type=AuditEntity.INVOICE,
                entity_id=invoice_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated
