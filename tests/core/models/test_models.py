"""Tests for core domain models - custom validators only."""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError


class TestSlugify:

    @pytest.mark.parametrize("name, slug", [
        ("General Service", "general-service"),
        ("Car & Bike Detailing", "car-bike-detailing"),
        ("  AC Repair!! ", "ac-repair"),
        ("4W Wheel Alignment", "4w-wheel-alignment"),
        ("***", ""),
    ])
    def test_slug_rules(self, name, slug):
        from core.models.service import slugify

        assert slugify(name) == slug


class TestVehiclePlates:

    def test_booking_plate_is_uppercased(self):
        from core.models import BookingCreate

        booking = BookingCreate(
            customer_name="Ravi", phone="9876543210", vehicle_type="2W",
            vehicle_brand="Honda", vehicle_model="Activa", vehicle_number=" ka01ab1234 ",
            service_id=uuid4(), preferred_date="2025-03-20", preferred_time="10:00 AM",
        )

        assert booking.vehicle_number == "KA01AB1234"

    def test_blank_plate_becomes_none(self):
        from core.models import JobCardCreate

        assert JobCardCreate(vehicle_number="   ").vehicle_number is None

    def test_vehicle_details_number_is_uppercased(self):
        from core.models import VehicleDetails

        details = VehicleDetails(type="4W", brand="Tata", model="Nexon", number="mh12de1433")

        assert details.number == "MH12DE1433"

    def test_unknown_vehicle_type_rejected(self):
        from core.models import VehicleDetails

        with pytest.raises(ValidationError):
            VehicleDetails(type="3W", brand="Bajaj", model="RE", number="X")


class TestBookingCreate:

    def test_invalid_email_rejected(self):
        from core.models import BookingCreate

        with pytest.raises(ValidationError, match="email"):
            BookingCreate(
                customer_name="Ravi", phone="9876543210", email="not-an-email",
                vehicle_type="4W", vehicle_brand="Maruti", vehicle_model="Swift",
                service_id=uuid4(), preferred_date="2025-03-20", preferred_time="10:00 AM",
            )

    def test_notes_limited_to_500_chars(self):
        from core.models import BookingCreate

        with pytest.raises(ValidationError):
            BookingCreate(
                customer_name="Ravi", phone="9876543210",
                vehicle_type="4W", vehicle_brand="Maruti", vehicle_model="Swift",
                service_id=uuid4(), preferred_date="2025-03-20", preferred_time="10:00 AM",
                notes="x" * 501,
            )


class TestPartLineItem:

    def test_total_is_derived(self):
        from core.models import PartLineItem

        part = PartLineItem(name="Oil filter", quantity=3, unit_price=Decimal("180.50"))

        assert part.total == Decimal("541.50")

    def test_supplied_total_is_overridden(self):
        from core.models import PartLineItem

        part = PartLineItem(name="Oil filter", quantity=2, unit_price=Decimal("100"), total=Decimal("1"))

        assert part.total == Decimal("200")

    def test_zero_quantity_rejected(self):
        from core.models import PartLineItem

        with pytest.raises(ValidationError):
            PartLineItem(name="Oil filter", quantity=0, unit_price=Decimal("100"))


class TestServiceRef:

    def test_reference_round_trips_through_discriminator(self):
        from core.models import BookingDetail

        service_id = uuid4()
        detail = BookingDetail.model_validate({
            "id": uuid4(), "booking_id": "RMW-2025-0001", "customer_name": "Ravi",
            "phone": "9876543210", "email": None, "vehicle_type": "4W",
            "vehicle_brand": "Maruti", "vehicle_model": "Swift", "vehicle_number": None,
            "service_id": service_id, "preferred_date": "2025-03-20", "preferred_time": "10:00 AM",
            "notes": None, "status": "pending",
            "created_at": "2025-03-14T09:30:00Z", "updated_at": "2025-03-14T09:30:00Z",
            "service": {"kind": "reference", "id": str(service_id)},
        })

        assert detail.service.kind == "reference"
        assert detail.service.id == service_id

    def test_expanded_exposes_id(self, rows):
        from core.models import Service, ServiceExpanded

        ref = ServiceExpanded(service=Service.model_validate(rows.service()))

        assert ref.id == rows.SERVICE_ID
        assert ref.model_dump(mode="json")["kind"] == "expanded"


class TestInvoice:

    def test_valid_row_loads(self, rows):
        from core.models import Invoice

        invoice = Invoice.model_validate(rows.invoice())

        assert invoice.vehicle_details.number == "KA01AB1234"
        assert invoice.is_paid is False

    def test_inconsistent_round_off_rejected(self, rows):
        from core.models import Invoice

        with pytest.raises(ValidationError, match="round_off"):
            Invoice.model_validate(rows.invoice(round_off=Decimal("0.5")))


class TestInvoicePaymentUpdate:

    def test_rejects_fields_outside_payment(self):
        from core.models import InvoicePaymentUpdate

        with pytest.raises(ValidationError):
            InvoicePaymentUpdate(amount_paid=Decimal("100"), discount_percent=Decimal("50"))

    def test_rejects_negative_amount(self):
        from core.models import InvoicePaymentUpdate

        with pytest.raises(ValidationError):
            InvoicePaymentUpdate(amount_paid=Decimal("-1"))


class TestInvoiceCreate:

    def test_discount_bounds(self):
        from core.models import InvoiceCreate

        with pytest.raises(ValidationError):
            InvoiceCreate(job_card_id=uuid4(), discount_percent=Decimal("101"))

    def test_taxes_default_to_none(self):
        from core.models import InvoiceCreate

        data = InvoiceCreate(job_card_id=uuid4())

        assert data.cgst_percent is None
        assert data.sgst_percent is None
        assert data.discount_percent == Decimal("0")
