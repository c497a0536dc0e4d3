"""
Job card service for the repair workflow.

Job cards are opened by staff, either directly or from a booking, and move
through received -> diagnosis -> in-progress -> ready -> delivered. Every
status change and every line-item edit lands in one UPDATE statement so the
history, milestones and running total never disagree with the status.
"""

import logging
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, AuditEntity, compute_changes
from core.billing import job_card_total
from core.config import WorkshopConfig
from core.exceptions import NotFoundError, ValidationError
from core.identifiers import IdentifierGenerator, IdentifierKind
from core.job_card_workflow import STATUS_LABELS, build_timeline, initial_history, plan_transition
from core.models import (
    JobCard,
    JobCardCreate,
    JobCardStatus,
    JobCardUpdate,
    ServiceLineItem,
    TrackingView,
)
from core.services.booking_service import BookingService
from core.services.catalog_service import CatalogService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "customer_name", "phone", "email", "vehicle_color", "odometer_reading",
    "fuel_level", "services_requested", "parts_used", "labour_charges",
    "mechanic_assigned", "service_advisor", "estimated_delivery",
    "estimated_total", "customer_notes", "internal_notes"
}

# Fields whose change re-derives final_total
_TOTAL_FIELDS = {"services_requested", "parts_used", "labour_charges"}

_REQUIRED_FIELDS = (
    "customer_name", "phone", "vehicle_type", "vehicle_brand",
    "vehicle_model", "vehicle_number"
)

_BOOKING_FIELDS = _REQUIRED_FIELDS + ("email",)

JOB_CARD_NUMBER_CONSTRAINT = "job_cards_job_card_number_key"


class JobCardService:
    """Service for job card operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        bookings: BookingService,
        catalog: CatalogService,
        identifiers: IdentifierGenerator,
        config: WorkshopConfig | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.bookings = bookings
        self.catalog = catalog
        self.identifiers = identifiers
        self.config = config or WorkshopConfig()

    def create(self, data: JobCardCreate, updated_by: str | None = None) -> JobCard:
        """
        Open a job card, optionally promoting a booking.

        With a booking, customer and vehicle fields the caller left out are
        copied from it, the booked service seeds the service list when none
        was given, and the booking is marked completed whatever its status.

        Args:
            data: Job card data
            updated_by: Staff member recorded on the first history entry

        Returns:
            Created job card in RECEIVED status

        Raises:
            NotFoundError: If booking_id does not resolve
            ValidationError: If required customer/vehicle fields are missing
        """
        fields = data.model_dump()
        services = list(data.services_requested)
        booking = None

        if data.booking_id is not None:
            booking = self.bookings.get_by_id(data.booking_id)
            if booking is None:
                raise NotFoundError("Booking", data.booking_id)

            for field in _BOOKING_FIELDS:
                if fields.get(field) is None:
                    fields[field] = getattr(booking, field)

            if not services:
                service = self.catalog.get_by_id(booking.service_id)
                if service is not None:
                    services = [
                        ServiceLineItem(
                            service_id=service.id,
                            name=service.name,
                            description=service.short_description,
                            estimated_cost=service.base_price,
                            actual_cost=0,
                        )
                    ]

        missing = [f for f in _REQUIRED_FIELDS if not fields.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        job_card_id = uuid4()
        now = now_utc()
        history = initial_history(now, updated_by)
        final_total = job_card_total(services, data.parts_used, data.labour_charges)

        def insert(job_card_number: str) -> dict:
            return self.postgres.execute_returning(
                """
                INSERT INTO job_cards (
                    id, job_card_number, booking_id,
                    customer_name, phone, email,
                    vehicle_type, vehicle_brand, vehicle_model, vehicle_number,
                    vehicle_color, odometer_reading, fuel_level,
                    services_requested, parts_used, labour_charges,
                    mechanic_assigned, service_advisor,
                    status, status_history, estimated_delivery,
                    estimated_total, final_total, customer_notes, internal_notes,
                    received_at, created_at, updated_at
                ) VALUES (
                    %s, %s, %s,
                    %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s,
                    %s, %s, %s,
                    %s, %s,
                    %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s
                )
                RETURNING *
                """,
                (
                    job_card_id, job_card_number, data.booking_id,
                    fields["customer_name"], fields["phone"], fields["email"],
                    _enum_value(fields["vehicle_type"]), fields["vehicle_brand"],
                    fields["vehicle_model"], fields["vehicle_number"].upper(),
                    data.vehicle_color, data.odometer_reading, _enum_value(data.fuel_level),
                    _json_list(services), _json_list(data.parts_used),
                    data.labour_charges,
                    data.mechanic_assigned, data.service_advisor,
                    JobCardStatus.RECEIVED.value, _json_list(history), data.estimated_delivery,
                    data.estimated_total, final_total, data.customer_notes, data.internal_notes,
                    now, now, now
                )
            )[0]

        row = self.identifiers.create_with_identifier(
            IdentifierKind.JOB_CARD, insert, JOB_CARD_NUMBER_CONSTRAINT
        )
        job_card = JobCard.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.JOB_CARD,
            entity_id=job_card.id,
            action=AuditAction.CREATE,
            changes={"created": job_card.model_dump(mode="json")}
        )

        # Not rolled back if this fails; the job card stands on its own
        if booking is not None:
            self.bookings.mark_completed(booking.id)

        logger.info("Job card %s opened", job_card.job_card_number)
        return job_card

    def get_by_id(self, job_card_id: UUID) -> JobCard | None:
        """
        Get job card by ID.

        Returns:
            JobCard if found and not deleted, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM job_cards WHERE id = %s AND deleted_at IS NULL",
            (job_card_id,)
        )

        if row is None:
            return None

        return JobCard.model_validate(row)

    def get_by_number(self, job_card_number: str) -> JobCard | None:
        """Get job card by its JC number (case-insensitive)."""
        row = self.postgres.execute_single(
            "SELECT * FROM job_cards WHERE job_card_number = %s AND deleted_at IS NULL",
            (job_card_number.strip().upper(),)
        )

        if row is None:
            return None

        return JobCard.model_validate(row)

    def list_job_cards(
        self,
        status: JobCardStatus | None = None,
        phone: str | None = None,
        vehicle_number: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[JobCard]:
        """
        List job cards with optional filters.

        Returns:
            Job cards ordered by creation time DESC
        """
        conditions = ["deleted_at IS NULL"]
        params: list = []
        if status:
            conditions.append("status = %s")
            params.append(status.value)
        if phone:
            conditions.append("phone = %s")
            params.append(phone)
        if vehicle_number:
            conditions.append("vehicle_number = %s")
            params.append(vehicle_number.strip().upper())

        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM job_cards
            WHERE {' AND '.join(conditions)}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )

        return [JobCard.model_validate(row) for row in rows]

    def update(
        self,
        job_card_id: UUID,
        data: JobCardUpdate,
        updated_by: str | None = None,
    ) -> JobCard:
        """
        Update job card fields and/or status.

        Editing services, parts or labour re-derives final_total. A status
        change appends one history entry and stamps its milestone if that
        milestone is still empty. Both happen in the same statement.

        Args:
            job_card_id: Job card UUID
            data: Fields to update
            updated_by: Staff member recorded on the history entry

        Returns:
            Updated job card

        Raises:
            NotFoundError: If job card not found
        """
        current = self.get_by_id(job_card_id)
        if current is None:
            raise NotFoundError("Job card", job_card_id)

        updates = data.model_dump(exclude_none=True, exclude={"status", "status_note"})

        for field in updates:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on job card {job_card_id}"
                )

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}

        now = now_utc()
        transition = None
        if data.status is not None:
            transition = plan_transition(current, data.status, now, data.status_note, updated_by)

        if not valid_updates and transition is None:
            return current

        set_parts = []
        params = []
        for field, value in valid_updates.items():
            if field == "services_requested":
                value = _json_list(data.services_requested)
            elif field == "parts_used":
                value = _json_list(data.parts_used)
            elif field == "fuel_level":
                value = _enum_value(data.fuel_level)
            set_parts.append(f"{field} = %s")
            params.append(value)

        if _TOTAL_FIELDS & valid_updates.keys():
            final_total = job_card_total(
                data.services_requested if data.services_requested is not None else current.services_requested,
                data.parts_used if data.parts_used is not None else current.parts_used,
                data.labour_charges if data.labour_charges is not None else current.labour_charges,
            )
            set_parts.append("final_total = %s")
            params.append(final_total)

        if transition is not None:
            set_parts.append("status = %s")
            params.append(transition.new_status.value)
            set_parts.append("status_history = status_history || %s::jsonb")
            params.append(_json_list([transition.history_entry]))
            if transition.milestone_field:
                field = transition.milestone_field
                set_parts.append(f"{field} = COALESCE({field}, %s)")
                params.append(transition.timestamp)

        set_parts.append("updated_at = %s")
        params.append(now)
        params.append(job_card_id)

        rows = self.postgres.execute_returning(
            f"""
            UPDATE job_cards
            SET {', '.join(set_parts)}
            WHERE id = %s AND deleted_at IS NULL
            RETURNING *
            """,
            tuple(params)
        )
        if not rows:
            # Deleted since it was read
            raise NotFoundError("Job card", job_card_id)

        updated = JobCard.model_validate(rows[0])

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type=AuditEntity.JOB_CARD,
                entity_id=job_card_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        if transition is not None:
            logger.info(
                "Job card %s: %s -> %s",
                updated.job_card_number, current.status.value, updated.status.value
            )

        return updated

    def delete(self, job_card_id: UUID) -> bool:
        """
        Soft delete a job card.

        Returns:
            True if deleted, False if not found
        """
        current = self.get_by_id(job_card_id)
        if current is None:
            return False

        now = now_utc()
        self.postgres.execute_returning(
            """
            UPDATE job_cards
            SET deleted_at = %s, updated_at = %s
            WHERE id = %s
            RETURNING id
            """,
            (now, now, job_card_id)
        )

        self.audit.log_change(
            entity_type=AuditEntity.JOB_CARD,
            entity_id=job_card_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )

        return True

    def track_by_phone(self, phone: str) -> list[TrackingView]:
        """
        Active (not yet delivered) job cards for a phone number, newest first.

        Raises:
            NotFoundError: If the phone has no active job cards
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM job_cards
            WHERE phone = %s AND status <> %s AND deleted_at IS NULL
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (phone, JobCardStatus.DELIVERED.value, self.config.track_phone_limit)
        )
        if not rows:
            raise NotFoundError("Service record", f"for {phone}")

        return [to_tracking_view(JobCard.model_validate(row)) for row in rows]

    def track_by_number(self, job_card_number: str) -> TrackingView:
        """
        Tracking view for one job card number.

        Raises:
            NotFoundError: If no job card has that number
        """
        job_card = self.get_by_number(job_card_number)
        if job_card is None:
            raise NotFoundError("Job card", job_card_number.strip().upper())

        return to_tracking_view(job_card)


def to_tracking_view(job_card: JobCard) -> TrackingView:
    """Customer-facing projection with the five-step timeline."""
    return TrackingView(
        job_card_number=job_card.job_card_number,
        vehicle_number=job_card.vehicle_number,
        vehicle_brand=job_card.vehicle_brand,
        vehicle_model=job_card.vehicle_model,
        status=job_card.status,
        status_label=STATUS_LABELS[job_card.status],
        received_at=job_card.received_at,
        estimated_delivery=job_card.estimated_delivery,
        timeline=build_timeline(job_card),
    )


def _json_list(items) -> Json:
    """Wrap a list of models for a JSONB column."""
    return Json([item.model_dump(mode="json") for item in items])


def _enum_value(value):
    return value.value if hasattr(value, "value") else value
