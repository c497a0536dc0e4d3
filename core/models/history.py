"""Customer-facing vehicle service history."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from core.models.invoice import PaymentStatus
from core.models.job_card import JobCardStatus
from core.models.vehicle import VehicleType


class ServiceVisit(BaseModel):
    """One job card in a vehicle's history."""

    job_card_number: str
    date: datetime
    services: list[str]
    total_amount: Decimal
    status: JobCardStatus
    invoice_number: str | None = None
    payment_status: PaymentStatus | None = None


class VehicleRecord(BaseModel):
    """All visits of one vehicle, newest first."""

    vehicle_number: str
    vehicle_type: VehicleType
    vehicle_brand: str
    vehicle_model: str
    services: list[ServiceVisit]


class VehicleHistory(BaseModel):
    """Everything a phone number has had serviced."""

    phone: str
    customer_name: str
    total_vehicles: int
    total_services: int
    vehicles: list[VehicleRecord]
