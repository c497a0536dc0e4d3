"""Job card domain models.

A job card is the operational record of work done on one vehicle visit.
Line items live inside the card as JSONB arrays; the status history is
append-only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from core.models.vehicle import FuelLevel, VehicleType, normalize_plate


class JobCardStatus(str, Enum):
    """Repair lifecycle status, in workshop order."""

    RECEIVED = "received"
    DIAGNOSIS = "diagnosis"
    IN_PROGRESS = "in-progress"
    READY = "ready"
    DELIVERED = "delivered"


class ServiceLineItem(BaseModel):
    """Service requested on a job card."""

    service_id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=1000)
    estimated_cost: Decimal = Field(Decimal("0"), ge=0)
    actual_cost: Decimal = Field(Decimal("0"), ge=0)


class PartLineItem(BaseModel):
    """Part fitted during the job. `total` always equals quantity x unit_price."""

    name: str = Field(..., min_length=1, max_length=255)
    part_number: str | None = Field(None, max_length=100)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    total: Decimal = Decimal("0")

    @model_validator(mode="after")
    def compute_total(self) -> "PartLineItem":
        self.total = self.unit_price * self.quantity
        return self


class StatusHistoryEntry(BaseModel):
    """One recorded status change."""

    status: JobCardStatus
    timestamp: datetime
    note: str | None = None
    updated_by: str | None = None


class JobCardCreate(BaseModel):
    """
    Data for opening a job card.

    When `booking_id` is given, missing customer and vehicle fields are
    copied from the booking, so they are optional here and checked by the
    service after the merge.
    """

    booking_id: UUID | None = None
    customer_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, min_length=10, max_length=20)
    email: EmailStr | None = None
    vehicle_type: VehicleType | None = None
    vehicle_brand: str | None = Field(None, min_length=1, max_length=100)
    vehicle_model: str | None = Field(None, min_length=1, max_length=100)
    vehicle_number: str | None = Field(None, min_length=1, max_length=20)
    vehicle_color: str | None = Field(None, max_length=50)
    odometer_reading: int | None = Field(None, ge=0)
    fuel_level: FuelLevel | None = None
    services_requested: list[ServiceLineItem] = Field(default_factory=list)
    parts_used: list[PartLineItem] = Field(default_factory=list)
    labour_charges: Decimal = Field(Decimal("0"), ge=0)
    mechanic_assigned: str | None = Field(None, max_length=100)
    service_advisor: str | None = Field(None, max_length=100)
    estimated_delivery: datetime | None = None
    estimated_total: Decimal = Field(Decimal("0"), ge=0)
    customer_notes: str | None = Field(None, max_length=1000)
    internal_notes: str | None = Field(None, max_length=1000)

    @field_validator("vehicle_number")
    @classmethod
    def uppercase_plate(cls, value: str | None) -> str | None:
        return normalize_plate(value)


class JobCardUpdate(BaseModel):
    """
    Admin edits to a job card. All fields optional.

    `status_note` is recorded on the history entry when `status` changes.
    """

    customer_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, min_length=10, max_length=20)
    email: EmailStr | None = None
    vehicle_color: str | None = Field(None, max_length=50)
    odometer_reading: int | None = Field(None, ge=0)
    fuel_level: FuelLevel | None = None
    services_requested: list[ServiceLineItem] | None = None
    parts_used: list[PartLineItem] | None = None
    labour_charges: Decimal | None = Field(None, ge=0)
    mechanic_assigned: str | None = Field(None, max_length=100)
    service_advisor: str | None = Field(None, max_length=100)
    estimated_delivery: datetime | None = None
    estimated_total: Decimal | None = Field(None, ge=0)
    customer_notes: str | None = Field(None, max_length=1000)
    internal_notes: str | None = Field(None, max_length=1000)
    status: JobCardStatus | None = None
    status_note: str | None = Field(None, max_length=500)


class JobCard(BaseModel):
    """Full job card entity as stored."""

    id: UUID
    job_card_number: str
    booking_id: UUID | None
    customer_name: str
    phone: str
    email: str | None
    vehicle_type: VehicleType
    vehicle_brand: str
    vehicle_model: str
    vehicle_number: str
    vehicle_color: str | None
    odometer_reading: int | None
    fuel_level: FuelLevel | None
    services_requested: list[ServiceLineItem]
    parts_used: list[PartLineItem]
    labour_charges: Decimal
    mechanic_assigned: str | None
    service_advisor: str | None
    status: JobCardStatus
    status_history: list[StatusHistoryEntry]
    estimated_delivery: datetime | None
    estimated_total: Decimal
    final_total: Decimal
    customer_notes: str | None
    internal_notes: str | None
    received_at: datetime
    diagnosis_completed_at: datetime | None
    repair_started_at: datetime | None
    ready_at: datetime | None
    delivered_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    model_config = {"from_attributes": True}

    @property
    def is_delivered(self) -> bool:
        return self.status == JobCardStatus.DELIVERED


class TimelineStep(BaseModel):
    """One step of the public tracking timeline."""

    status: JobCardStatus
    label: str
    completed: bool
    timestamp: datetime | None = None


class TrackingView(BaseModel):
    """Customer-facing projection of a job card."""

    job_card_number: str
    vehicle_number: str
    vehicle_brand: str
    vehicle_model: str
    status: JobCardStatus
    status_label: str
    received_at: datetime
    estimated_delivery: datetime | None
    timeline: list[TimelineStep]
