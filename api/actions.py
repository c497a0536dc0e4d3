"""POST /api/actions: unified mutation endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from auth.security_middleware import require_admin
from auth.types import Session
from core.exceptions import NotFoundError, ValidationError
from core.models import (
    BookingCreate, BookingUpdate,
    JobCardCreate, JobCardUpdate,
    InvoiceCreate, InvoicePaymentUpdate,
    ServiceCreate, ServiceUpdate,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "booking": BookingHandler(services["booking"]),
        "job_card": JobCardHandler(services["job_card"]),
        "invoice": InvoiceHandler(services["invoice"]),
        "catalog": CatalogHandler(services["catalog"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValidationError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValidationError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        session = None
        if body.action not in handler.PUBLIC_ACTIONS:
            session = require_admin(request)

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data), session)
        return success_response(result, handler.MESSAGES.get(body.action)).model_dump(mode="json")

    return router


def _entity_id(data: dict, key: str = "id") -> UUID:
    """Pop and parse the target entity's UUID from an action payload."""
    value = data.pop(key, None)
    if not value:
        raise ValidationError(f"'{key}' is required")
    return UUID(str(value))


def _actor(session: Session | None) -> str | None:
    return str(session.user_id) if session else None


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class BookingHandler:
    ALLOWED_ACTIONS = {"create", "update", "cancel"}
    PUBLIC_ACTIONS = {"create", "cancel"}
    MESSAGES = {
        "create": "Booking created successfully",
        "update": "Booking updated successfully",
        "cancel": "Booking cancelled",
    }

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict, session: Session | None):
        booking = self.service.create(BookingCreate(**data))
        return booking.model_dump(mode="json")

    def _handle_update(self, data: dict, session: Session | None):
        booking_id = _entity_id(data)
        booking = self.service.update(booking_id, BookingUpdate(**data))
        return booking.model_dump(mode="json")

    def _handle_cancel(self, data: dict, session: Session | None):
        booking = self.service.cancel(_entity_id(data))
        return booking.model_dump(mode="json")


class JobCardHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete"}
    PUBLIC_ACTIONS: set[str] = set()
    MESSAGES = {
        "create": "Job card created successfully",
        "update": "Job card updated successfully",
        "delete": "Job card deleted",
    }

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict, session: Session | None):
        job_card = self.service.create(JobCardCreate(**data), updated_by=_actor(session))
        return job_card.model_dump(mode="json")

    def _handle_update(self, data: dict, session: Session | None):
        job_card_id = _entity_id(data)
        job_card = self.service.update(job_card_id, JobCardUpdate(**data), updated_by=_actor(session))
        return job_card.model_dump(mode="json")

    def _handle_delete(self, data: dict, session: Session | None):
        job_card_id = _entity_id(data)
        if not self.service.delete(job_card_id):
            raise NotFoundError("Job card", job_card_id)
        return {"deleted": True}


class InvoiceHandler:
    ALLOWED_ACTIONS = {"create", "update_payment"}
    PUBLIC_ACTIONS: set[str] = set()
    MESSAGES = {
        "create": "Invoice created successfully",
        "update_payment": "Invoice updated successfully",
    }

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict, session: Session | None):
        invoice = self.service.create_from_job_card(InvoiceCreate(**data))
        return invoice.model_dump(mode="json")

    def _handle_update_payment(self, data: dict, session: Session | None):
        invoice_id = _entity_id(data)
        invoice = self.service.update_payment(invoice_id, InvoicePaymentUpdate(**data))
        return invoice.model_dump(mode="json")


class CatalogHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete"}
    PUBLIC_ACTIONS: set[str] = set()
    MESSAGES = {
        "create": "Service created successfully",
        "update": "Service updated successfully",
        "delete": "Service deleted",
    }

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict, session: Session | None):
        service = self.service.create(ServiceCreate(**data))
        return service.model_dump(mode="json")

    def _handle_update(self, data: dict, session: Session | None):
        service_id = _entity_id(data)
        service = self.service.update(service_id, ServiceUpdate(**data))
        return service.model_dump(mode="json")

    def _handle_delete(self, data: dict, session: Session | None):
        service_id = _entity_id(data)
        if not self.service.delete(service_id):
            raise NotFoundError("Service", service_id)
        return {"deleted": True}
