"""Invoice domain models.

All amounts are rupees as Decimal. Percentages are plain percent values
(9 = 9%). An invoice is a frozen snapshot of one job card; only the
payment fields change after generation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from core.models.vehicle import VehicleDetails


class PaymentStatus(str, Enum):
    """Invoice payment status."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class InvoiceServiceLine(BaseModel):
    """Service line frozen at generation time."""

    name: str
    description: str | None = None
    quantity: int = 1
    rate: Decimal
    amount: Decimal


class InvoicePartLine(BaseModel):
    """Part line frozen at generation time."""

    name: str
    part_number: str | None = None
    quantity: int
    unit_price: Decimal
    amount: Decimal


class InvoiceTotals(BaseModel):
    """Full tax breakdown produced by core.billing.calculate_totals."""

    services_total: Decimal
    parts_total: Decimal
    labour_charges: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    round_off: Decimal
    final_amount: Decimal


class InvoiceCreate(BaseModel):
    """Request to generate an invoice from a job card."""

    job_card_id: UUID
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    cgst_percent: Decimal | None = Field(None, ge=0, le=100)
    sgst_percent: Decimal | None = Field(None, ge=0, le=100)
    address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=500)
    terms_and_conditions: str | None = Field(None, max_length=2000)


class InvoicePaymentUpdate(BaseModel):
    """Payment fields an admin may record. Nothing else on an invoice is mutable."""

    payment_status: PaymentStatus | None = None
    payment_method: str | None = Field(None, min_length=1, max_length=50)
    amount_paid: Decimal | None = Field(None, ge=0)

    model_config = {"extra": "forbid"}


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: UUID
    invoice_number: str
    job_card_id: UUID
    customer_name: str
    phone: str
    email: str | None
    address: str | None
    vehicle_details: VehicleDetails
    services: list[InvoiceServiceLine]
    parts: list[InvoicePartLine]
    labour_charges: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    round_off: Decimal
    final_amount: Decimal
    payment_status: PaymentStatus
    payment_method: str | None
    amount_paid: Decimal
    balance_due: Decimal
    notes: str | None
    terms_and_conditions: str | None
    generated_at: datetime
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_round_off(self) -> "Invoice":
        if self.final_amount - self.grand_total != self.round_off:
            raise ValueError("round_off must equal final_amount - grand_total")
        return self

    @property
    def is_paid(self) -> bool:
        """Whether invoice is fully paid."""
        return self.payment_status == PaymentStatus.PAID
