"""
Catalog service for the workshop's service offerings.

Catalog entries are referenced by bookings and job cards. They are never
hard-deleted, so old bookings keep resolving to a name and price.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, unique_violation_constraint
from core.audit import AuditLogger, AuditAction, AuditEntity, compute_changes
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import Service, ServiceCreate, ServiceUpdate, VehicleType
from core.models.service import slugify
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name", "slug", "short_description", "full_description",
    "vehicle_types", "base_price", "estimated_time", "features",
    "is_active", "display_order"
}

SLUG_CONSTRAINT = "services_slug_active_key"


class CatalogService:
    """Service for service catalog operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create(self, data: ServiceCreate) -> Service:
        """
        Create a new catalog entry. The slug is derived from the name.

        Args:
            data: Service creation data

        Returns:
            Created service

        Raises:
            ValidationError: If the name yields an empty slug
            ConflictError: If an active entry already has that slug
        """
        slug = slugify(data.name)
        if not slug:
            raise ValidationError("Service name must contain letters or digits")

        service_id = uuid4()
        now = now_utc()

        row = self._write_returning(
            slug,
            """
            INSERT INTO services (
                id, name, slug, short_description, full_description,
                vehicle_types, base_price, estimated_time, features,
                is_active, display_order, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                service_id, data.name, slug, data.short_description, data.full_description,
                [t.value for t in data.vehicle_types], data.base_price, data.estimated_time,
                data.features, data.is_active, data.display_order, now, now
            )
        )

        service = Service.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.SERVICE,
            entity_id=service.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)}
        )

        return service

    def get_by_id(self, service_id: UUID) -> Service | None:
        """Non-deleted entry by ID, or None. Inactive entries are returned too."""
        return self._get_one("id", service_id)

    def get_by_slug(self, slug: str) -> Service | None:
        return self._get_one("slug", slug)

    def list_active(self, vehicle_type: VehicleType | None = None) -> list[Service]:
        """Bookable entries, optionally only those offered for one vehicle type."""
        if vehicle_type is None:
            return self._select("is_active = true")
        return self._select("is_active = true AND %s = ANY(vehicle_types)", (vehicle_type.value,))

    def list_all(self) -> list[Service]:
        """Every non-deleted entry, active or not (admin view)."""
        return self._select()

    def update(self, service_id: UUID, data: ServiceUpdate) -> Service:
        """
        Apply a partial update. Renaming re-derives the slug.

        Raises:
            NotFoundError: No such (non-deleted) entry
            ConflictError: The new name's slug belongs to another active entry
        """
        current = self.get_by_id(service_id)
        if current is None:
            raise NotFoundError("Service", service_id)

        updates = {
            field: value
            for field, value in data.model_dump(exclude_none=True).items()
            if field in _UPDATABLE_COLUMNS
        }
        if not updates:
            return current

        if "name" in updates:
            updates["slug"] = slugify(updates["name"])
        if "vehicle_types" in updates:
            updates["vehicle_types"] = [VehicleType(t).value for t in updates["vehicle_types"]]

        assignments = ", ".join(f"{field} = %s" for field in updates)
        row = self._write_returning(
            updates.get("slug"),
            f"UPDATE services SET {assignments}, updated_at = %s WHERE id = %s RETURNING *",
            (*updates.values(), now_utc(), service_id)
        )
        updated = Service.model_validate(row)

        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change(
                entity_type=AuditEntity.SERVICE,
                entity_id=service_id,
                action=AuditAction.UPDATE,
                changes=changes
            )
        return updated

    def delete(self, service_id: UUID) -> bool:
        """
        Retire an entry (soft delete). Bookings and job cards that reference
        it keep resolving through their own copies of name and price.

        Returns:
            False if there was nothing to delete
        """
        current = self.get_by_id(service_id)
        if current is None:
            return False

        now = now_utc()
        self.postgres.execute_returning(
            "UPDATE services SET deleted_at = %s, updated_at = %s WHERE id = %s RETURNING id",
            (now, now, service_id)
        )

        self.audit.log_change(
            entity_type=AuditEntity.SERVICE,
            entity_id=service_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
        logger.info("Service %s retired from the catalog", current.slug)
        return True

    def _get_one(self, column: str, value) -> Service | None:
        row = self.postgres.execute_single(
            f"SELECT * FROM services WHERE {column} = %s AND deleted_at IS NULL",
            (value,)
        )
        return Service.model_validate(row) if row else None

    def _select(self, condition: str = "TRUE", params: tuple = ()) -> list[Service]:
        rows = self.postgres.execute(
            f"""
            SELECT * FROM services
            WHERE deleted_at IS NULL AND {condition}
            ORDER BY display_order ASC, name ASC
            """,
            params or None
        )
        return [Service.model_validate(row) for row in rows]

    def _write_returning(self, slug: str | None, query: str, params: tuple) -> dict:
        """Run an INSERT/UPDATE on services, reporting a slug clash as a conflict."""
        try:
            return self.postgres.execute_returning(query, params)[0]
        except Exception as e:
            if unique_violation_constraint(e) == SLUG_CONSTRAINT:
                raise ConflictError(f"A service with slug '{slug}' already exists") from e
            raise
