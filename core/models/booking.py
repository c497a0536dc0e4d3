"""Booking (appointment request) domain models."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from core.models.service import ServiceRef
from core.models.vehicle import VehicleType, normalize_plate


class BookingStatus(str, Enum):
    """Booking lifecycle status. Cancellation is a status, never a delete."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingCreate(BaseModel):
    """Data required to submit a booking from the public site."""

    customer_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=10, max_length=20)
    email: EmailStr | None = None
    vehicle_type: VehicleType
    vehicle_brand: str = Field(..., min_length=1, max_length=100)
    vehicle_model: str = Field(..., min_length=1, max_length=100)
    vehicle_number: str | None = Field(None, max_length=20)
    service_id: UUID
    preferred_date: date
    preferred_time: str = Field(..., min_length=1, max_length=20)
    notes: str | None = Field(None, max_length=500)

    @field_validator("vehicle_number")
    @classmethod
    def uppercase_plate(cls, value: str | None) -> str | None:
        return normalize_plate(value)


class BookingUpdate(BaseModel):
    """Admin edits to a booking. All fields optional."""

    customer_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, min_length=10, max_length=20)
    email: EmailStr | None = None
    vehicle_type: VehicleType | None = None
    vehicle_brand: str | None = Field(None, min_length=1, max_length=100)
    vehicle_model: str | None = Field(None, min_length=1, max_length=100)
    vehicle_number: str | None = Field(None, max_length=20)
    service_id: UUID | None = None
    preferred_date: date | None = None
    preferred_time: str | None = Field(None, min_length=1, max_length=20)
    notes: str | None = Field(None, max_length=500)
    status: BookingStatus | None = None

    @field_validator("vehicle_number")
    @classmethod
    def uppercase_plate(cls, value: str | None) -> str | None:
        return normalize_plate(value)


class Booking(BaseModel):
    """Full booking entity as stored."""

    id: UUID
    booking_id: str
    customer_name: str
    phone: str
    email: str | None
    vehicle_type: VehicleType
    vehicle_brand: str
    vehicle_model: str
    vehicle_number: str | None
    service_id: UUID
    preferred_date: date
    preferred_time: str
    notes: str | None
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


class BookingDetail(Booking):
    """Booking with its service reference resolved at the boundary."""

    service: ServiceRef
