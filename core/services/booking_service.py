"""
Booking service for appointment requests.

Bookings arrive from the public site and only ever change status or get
admin edits afterwards. Cancelling is a status change; bookings are never
deleted.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, AuditEntity, compute_changes
from core.exceptions import NotFoundError, ValidationError
from core.identifiers import IdentifierGenerator, IdentifierKind
from core.models import (
    Booking,
    BookingCreate,
    BookingDetail,
    BookingStatus,
    BookingUpdate,
    ServiceExpanded,
    ServiceReference,
)
from core.services.catalog_service import CatalogService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "customer_name", "phone", "email", "vehicle_type", "vehicle_brand",
    "vehicle_model", "vehicle_number", "service_id", "preferred_date",
    "preferred_time", "notes", "status"
}

BOOKING_ID_CONSTRAINT = "bookings_booking_id_key"


class BookingService:
    """Service for booking operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        catalog: CatalogService,
        identifiers: IdentifierGenerator,
    ):
        self.postgres = postgres
        self.audit = audit
        self.catalog = catalog
        self.identifiers = identifiers

    def create(self, data: BookingCreate) -> Booking:
        """
        Record a booking request and assign its booking number.

        Args:
            data: Booking submission

        Returns:
            Created booking in PENDING status

        Raises:
            ValidationError: If the chosen service does not exist
        """
        if self.catalog.get_by_id(data.service_id) is None:
            raise ValidationError("Invalid service type")

        booking_uuid = uuid4()
        now = now_utc()

        def insert(booking_number: str) -> dict:
            return self.postgres.execute_returning(
                """
                INSERT INTO bookings (
                    id, booking_id, customer_name, phone, email,
                    vehicle_type, vehicle_brand, vehicle_model, vehicle_number,
                    service_id, preferred_date, preferred_time, notes,
                    status, created_at, updated_at
                ) VALUES (
                    %s, %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s
                )
                RETURNING *
                """,
                (
                    booking_uuid, booking_number, data.customer_name, data.phone, data.email,
                    data.vehicle_type.value, data.vehicle_brand, data.vehicle_model, data.vehicle_number,
                    data.service_id, data.preferred_date, data.preferred_time, data.notes,
                    BookingStatus.PENDING.value, now, now
                )
            )[0]

        row = self.identifiers.create_with_identifier(
            IdentifierKind.BOOKING, insert, BOOKING_ID_CONSTRAINT
        )
        booking = Booking.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.BOOKING,
            entity_id=booking.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)}
        )

        logger.info("Booking %s created", booking.booking_id)
        return booking

    def get_by_id(self, booking_id: UUID) -> Booking | None:
        """
        Get booking by ID.

        Returns:
            Booking if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM bookings WHERE id = %s",
            (booking_id,)
        )

        if row is None:
            return None

        return Booking.model_validate(row)

    def get_detail(self, booking_id: UUID) -> BookingDetail:
        """
        Get a booking with its service reference resolved.

        A service that has since been deleted stays a bare reference.

        Raises:
            NotFoundError: If booking not found
        """
        booking = self.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)

        service = self.catalog.get_by_id(booking.service_id)
        if service is None:
            ref = ServiceReference(id=booking.service_id)
        else:
            ref = ServiceExpanded(service=service)

        return BookingDetail(**booking.model_dump(), service=ref)

    def list_bookings(
        self,
        phone: str | None = None,
        status: BookingStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Booking]:
        """
        List bookings, optionally filtered by phone and/or status.

        Returns:
            Bookings ordered by preferred date, latest first
        """
        conditions = []
        params: list = []
        if phone:
            conditions.append("phone = %s")
            params.append(phone)
        if status:
            conditions.append("status = %s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM bookings
            {where}
            ORDER BY preferred_date DESC, created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )

        return [Booking.model_validate(row) for row in rows]

    def update(self, booking_id: UUID, data: BookingUpdate) -> Booking:
        """
        Admin edit of a booking, status included.

        Args:
            booking_id: Booking UUID
            data: Fields to update

        Returns:
            Updated booking

        Raises:
            NotFoundError: If booking not found
            ValidationError: If a new service does not exist
        """
        current = self.get_by_id(booking_id)
        if current is None:
            raise NotFoundError("Booking", booking_id)

        updates = data.model_dump(exclude_none=True)
        if not updates:
            return current

        for field in updates:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on booking {booking_id}"
                )

        if "service_id" in updates and self.catalog.get_by_id(updates["service_id"]) is None:
            raise ValidationError("Invalid service type")

        # Convert enums to strings
        for field in ("status", "vehicle_type"):
            if field in updates and hasattr(updates[field], "value"):
                updates[field] = updates[field].value

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        return self._apply(current, valid_updates)

    def cancel(self, booking_id: UUID) -> Booking:
        """
        Cancel a booking.

        Raises:
            NotFoundError: If booking not found
        """
        current = self.get_by_id(booking_id)
        if current is None:
            raise NotFoundError("Booking", booking_id)

        if current.status == BookingStatus.CANCELLED:
            return current

        return self._apply(current, {"status": BookingStatus.CANCELLED.value})

    def mark_completed(self, booking_id: UUID) -> Booking:
        """
        Mark a booking completed because a job card was opened from it.

        Applies whatever the prior status was, cancelled included.

        Raises:
            NotFoundError: If booking not found
        """
        current = self.get_by_id(booking_id)
        if current is None:
            raise NotFoundError("Booking", booking_id)

        if current.status == BookingStatus.COMPLETED:
            return current

        return self._apply(current, {"status": BookingStatus.COMPLETED.value})

    def _apply(self, current: Booking, updates: dict) -> Booking:
        """Write column updates and audit the diff."""
        set_parts = []
        params = []
        for field, value in updates.items():
            set_parts.append(f"{field} = %s")
            params.append(value)

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(current.id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE bookings
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = Booking.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type=AuditEntity.BOOKING,
                entity_id=current.id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated
