"""Workshop business configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


DEFAULT_TERMS = (
    "Thank you for choosing Republic Motor Works. "
    "Warranty terms apply as per service type."
)


class WorkshopConfig(BaseModel):
    """
    Business rules that vary per deployment.

    Tax defaults follow Indian GST on services: half collected as CGST,
    half as SGST.
    """

    business_timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone whose calendar year scopes document numbers",
    )
    default_cgst_percent: Decimal = Field(default=Decimal("9"), ge=0, le=100)
    default_sgst_percent: Decimal = Field(default=Decimal("9"), ge=0, le=100)
    default_terms: str = Field(default=DEFAULT_TERMS, max_length=2000)
    track_phone_limit: int = Field(
        default=5,
        description="Max active job cards returned when tracking by phone",
        ge=1,
        le=50,
    )
    identifier_max_attempts: int = Field(
        default=3,
        description="Inserts retried with a fresh identifier on a uniqueness clash",
        ge=1,
        le=10,
    )
