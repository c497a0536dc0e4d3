"""GET /api/data: unified read endpoint."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from auth.security_middleware import current_session, require_admin
from core.exceptions import NotFoundError, ValidationError
from core.models import BookingStatus, JobCardStatus, PaymentStatus, VehicleType


VALID_TYPES = {"services", "bookings", "job_cards", "invoices"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    catalog_svc = services["catalog"]
    booking_svc = services["booking"]
    job_card_svc = services["job_card"]
    invoice_svc = services["invoice"]
    history_svc = services["vehicle_history"]

    # -------------------------------------------------------------------------
    # Convenience routes (must be registered before the generic /data route)
    # -------------------------------------------------------------------------

    @router.get("/data/job_cards/track")
    async def track_job_card(
        request: Request,
        phone: str | None = Query(None),
        job_card_number: str | None = Query(None),
    ):
        if job_card_number:
            view = job_card_svc.track_by_number(job_card_number)
            return success_response(view.model_dump(mode="json")).model_dump(mode="json")

        if phone:
            views = job_card_svc.track_by_phone(phone.strip())
            return success_response(
                [v.model_dump(mode="json") for v in views]
            ).model_dump(mode="json")

        raise ValidationError("Phone number or job card number is required")

    @router.get("/data/vehicles/history")
    async def vehicle_history(request: Request, phone: str | None = Query(None)):
        if not phone:
            raise ValidationError("Phone number is required")

        history = history_svc.history_for_phone(phone.strip())
        return success_response(history.model_dump(mode="json")).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Generic data endpoint
    # -------------------------------------------------------------------------

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        slug: str | None = Query(None),
        phone: str | None = Query(None),
        status: str | None = Query(None),
        vehicle_type: str | None = Query(None),
        vehicle_number: str | None = Query(None),
        job_card_number: str | None = Query(None),
        job_card_id: str | None = Query(None),
        include_inactive: bool = Query(False),
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
    ):
        if type is None:
            raise ValidationError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValidationError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "services":
            if include_inactive:
                require_admin(request)
            return _handle_services(catalog_svc, id, slug, vehicle_type, include_inactive)

        if type == "bookings":
            return _handle_bookings(request, booking_svc, id, phone, status, limit, offset)

        require_admin(request)

        if type == "job_cards":
            return _handle_job_cards(
                job_card_svc, id, job_card_number, status, phone, vehicle_number, limit, offset
            )

        if type == "invoices":
            return _handle_invoices(invoice_svc, id, job_card_id, status, phone, limit, offset)

    return router


def _handle_services(catalog_svc, id, slug, vehicle_type, include_inactive):
    if id or slug:
        service = catalog_svc.get_by_id(UUID(id)) if id else catalog_svc.get_by_slug(slug)
        if service is None or (not service.is_active and not include_inactive):
            raise NotFoundError("Service", id or slug)
        return success_response(service.model_dump(mode="json")).model_dump(mode="json")

    if include_inactive:
        services = catalog_svc.list_all()
    else:
        services = catalog_svc.list_active(VehicleType(vehicle_type) if vehicle_type else None)

    return success_response(
        [s.model_dump(mode="json") for s in services]
    ).model_dump(mode="json")


def _handle_bookings(request, booking_svc, id, phone, status, limit, offset):
    if id:
        booking = booking_svc.get_detail(UUID(id))
        return success_response(booking.model_dump(mode="json")).model_dump(mode="json")

    session = current_session(request)
    if not (session and session.is_admin) and not phone:
        raise ValidationError("Phone number is required")

    bookings = booking_svc.list_bookings(
        phone=phone.strip() if phone else None,
        status=BookingStatus(status) if status else None,
        limit=limit,
        offset=offset,
    )
    return success_response(
        [b.model_dump(mode="json") for b in bookings]
    ).model_dump(mode="json")


def _handle_job_cards(job_card_svc, id, job_card_number, status, phone, vehicle_number, limit, offset):
    if id or job_card_number:
        if id:
            job_card = job_card_svc.get_by_id(UUID(id))
        else:
            job_card = job_card_svc.get_by_number(job_card_number)
        if job_card is None:
            raise NotFoundError("Job card", id or job_card_number)
        return success_response(job_card.model_dump(mode="json")).model_dump(mode="json")

    job_cards = job_card_svc.list_job_cards(
        status=JobCardStatus(status) if status else None,
        phone=phone,
        vehicle_number=vehicle_number,
        limit=limit,
        offset=offset,
    )
    return success_response(
        [jc.model_dump(mode="json") for jc in job_cards]
    ).model_dump(mode="json")


def _handle_invoices(invoice_svc, id, job_card_id, status, phone, limit, offset):
    if id or job_card_id:
        if id:
            invoice = invoice_svc.get_by_id(UUID(id))
        else:
            invoice = invoice_svc.get_by_job_card(UUID(job_card_id))
        if invoice is None:
            raise NotFoundError("Invoice", id or job_card_id)
        return success_response(invoice.model_dump(mode="json")).model_dump(mode="json")

    invoices = invoice_svc.list_invoices(
        payment_status=PaymentStatus(status) if status else None,
        phone=phone,
        limit=limit,
        offset=offset,
    )
    return success_response(
        [i.model_dump(mode="json") for i in invoices]
    ).model_dump(mode="json")
