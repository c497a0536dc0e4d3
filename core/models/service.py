"""Service catalog domain models.

Prices are whole or fractional rupees held as Decimal, never float.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.vehicle import VehicleType


def slugify(name: str) -> str:
    """URL slug for a service name: 'Car & Bike Detailing' -> 'car-bike-detailing'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class ServiceCreate(BaseModel):
    """Data required to create a catalog entry."""

    name: str = Field(..., min_length=1, max_length=255)
    short_description: str = Field(..., min_length=1, max_length=200)
    full_description: str = Field(..., min_length=1, max_length=10000)
    vehicle_types: list[VehicleType] = Field(default_factory=list)
    base_price: Decimal = Field(..., ge=0)
    estimated_time: str = Field("1-2 hours", max_length=50)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    display_order: int = 0


class ServiceUpdate(BaseModel):
    """Data that can be updated on a catalog entry. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    short_description: str | None = Field(None, min_length=1, max_length=200)
    full_description: str | None = Field(None, min_length=1, max_length=10000)
    vehicle_types: list[VehicleType] | None = None
    base_price: Decimal | None = Field(None, ge=0)
    estimated_time: str | None = Field(None, max_length=50)
    features: list[str] | None = None
    is_active: bool | None = None
    display_order: int | None = None


class Service(BaseModel):
    """Full catalog entry as stored."""

    id: UUID
    name: str
    slug: str
    short_description: str
    full_description: str
    vehicle_types: list[VehicleType]
    base_price: Decimal
    estimated_time: str
    features: list[str]
    is_active: bool
    display_order: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    model_config = {"from_attributes": True}


class ServiceReference(BaseModel):
    """A catalog entry known only by ID (unresolved or no longer available)."""

    kind: Literal["reference"] = "reference"
    id: UUID


class ServiceExpanded(BaseModel):
    """A catalog entry resolved to its full record."""

    kind: Literal["expanded"] = "expanded"
    service: Service

    @property
    def id(self) -> UUID:
        return self.service.id


ServiceRef = Annotated[Union[ServiceReference, ServiceExpanded], Field(discriminator="kind")]
