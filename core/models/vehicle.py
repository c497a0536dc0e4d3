"""Vehicle descriptors shared by bookings, job cards and invoices."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class VehicleType(str, Enum):
    """Vehicle class the workshop services."""

    TWO_WHEELER = "2W"
    FOUR_WHEELER = "4W"


class FuelLevel(str, Enum):
    """Fuel gauge reading noted at vehicle intake."""

    EMPTY = "empty"
    QUARTER = "quarter"
    HALF = "half"
    THREE_QUARTER = "three-quarter"
    FULL = "full"


def normalize_plate(value: str | None) -> str | None:
    """Registration plates are stored trimmed and uppercase."""
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


class VehicleDetails(BaseModel):
    """Vehicle snapshot frozen onto an invoice."""

    type: VehicleType
    brand: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    number: str = Field(..., min_length=1, max_length=20)
    color: str | None = Field(None, max_length=50)

    @field_validator("number")
    @classmethod
    def uppercase_number(cls, value: str) -> str:
        return normalize_plate(value) or value
