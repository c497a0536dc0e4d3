"""
Tax and totals rules for job cards and invoices.

Pure functions only: no database, no clock. Amounts are Decimal rupees;
only the final payable amount is rounded (half-up, to whole rupees), every
intermediate figure keeps full precision so the round-off is exact.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from core.exceptions import ValidationError
from core.models import (
    InvoicePartLine,
    InvoiceServiceLine,
    InvoiceTotals,
    PartLineItem,
    PaymentStatus,
    ServiceLineItem,
)

HUNDRED = Decimal("100")
ZERO = Decimal("0")
DEFAULT_CGST_PERCENT = Decimal("9")
DEFAULT_SGST_PERCENT = Decimal("9")


def service_charge(item: ServiceLineItem) -> Decimal:
    """Billable amount for a service: actual cost once known, else the estimate."""
    return item.actual_cost if item.actual_cost > 0 else item.estimated_cost


def freeze_service_line(item: ServiceLineItem) -> InvoiceServiceLine:
    rate = service_charge(item)
    return InvoiceServiceLine(
        name=item.name,
        description=item.description or None,
        quantity=1,
        rate=rate,
        amount=rate,
    )


def freeze_part_line(item: PartLineItem) -> InvoicePartLine:
    return InvoicePartLine(
        name=item.name,
        part_number=item.part_number,
        quantity=item.quantity,
        unit_price=item.unit_price,
        amount=item.unit_price * item.quantity,
    )


def job_card_total(
    services: Iterable[ServiceLineItem],
    parts: Iterable[PartLineItem],
    labour_charges: Decimal,
) -> Decimal:
    """
    Running total of a job card.

    Sum of part totals, service actual costs and labour. Services without an
    actual cost yet contribute nothing here (unlike on an invoice, which
    falls back to the estimate).
    """
    parts_sum = sum((p.unit_price * p.quantity for p in parts), ZERO)
    services_sum = sum((s.actual_cost for s in services), ZERO)
    return parts_sum + services_sum + labour_charges


def round_rupees(amount: Decimal) -> Decimal:
    """Round half-up to a whole rupee."""
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_totals(
    services: list[InvoiceServiceLine],
    parts: list[InvoicePartLine],
    labour_charges: Decimal = ZERO,
    discount_percent: Decimal = ZERO,
    cgst_percent: Decimal = DEFAULT_CGST_PERCENT,
    sgst_percent: Decimal = DEFAULT_SGST_PERCENT,
) -> InvoiceTotals:
    """
    Compute the invoice tax breakdown.

    Order: subtotal, discount, taxable amount, CGST and SGST on the taxable
    amount, grand total, then whole-rupee rounding with a signed round-off.

    Args:
        services: Frozen service lines
        parts: Frozen part lines
        labour_charges: Labour on top of line items
        discount_percent: 0..100, applied to the subtotal
        cgst_percent: Central GST percent
        sgst_percent: State GST percent

    Returns:
        InvoiceTotals with every intermediate figure

    Raises:
        ValidationError: Nothing to invoice, or a percentage out of range
    """
    if not services and not parts and labour_charges <= 0:
        raise ValidationError("Job card has no services, parts or labour to invoice")
    if not ZERO <= discount_percent <= HUNDRED:
        raise ValidationError("Discount percent must be between 0 and 100")
    if cgst_percent < 0 or sgst_percent < 0:
        raise ValidationError("Tax percent cannot be negative")
    if labour_charges < 0:
        raise ValidationError("Labour charges cannot be negative")

    services_total = sum((s.amount for s in services), ZERO)
    parts_total = sum((p.amount for p in parts), ZERO)
    subtotal = services_total + parts_total + labour_charges

    discount_amount = subtotal * discount_percent / HUNDRED
    taxable_amount = subtotal - discount_amount

    cgst_amount = taxable_amount * cgst_percent / HUNDRED
    sgst_amount = taxable_amount * sgst_percent / HUNDRED
    total_tax = cgst_amount + sgst_amount

    grand_total = taxable_amount + total_tax
    final_amount = round_rupees(grand_total)

    return InvoiceTotals(
        services_total=services_total,
        parts_total=parts_total,
        labour_charges=labour_charges,
        subtotal=subtotal,
        discount_percent=discount_percent,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        cgst_percent=cgst_percent,
        cgst_amount=cgst_amount,
        sgst_percent=sgst_percent,
        sgst_amount=sgst_amount,
        total_tax=total_tax,
        grand_total=grand_total,
        round_off=final_amount - grand_total,
        final_amount=final_amount,
    )


def derive_payment_state(
    final_amount: Decimal,
    amount_paid: Decimal,
    requested_status: PaymentStatus | None,
    paid_at: datetime | None,
    now: datetime,
    current_status: PaymentStatus | None = None,
) -> tuple[PaymentStatus, Decimal, datetime | None]:
    """
    Payment status, balance and paid timestamp after a payment update.

    The amount paid decides the status and overrides whatever was requested;
    a requested status only sticks when nothing has been paid. With nothing
    paid and nothing requested the invoice keeps `current_status`, or falls
    back to PENDING when there is none. `paid_at` is stamped the first time
    the invoice is settled and never cleared.

    Returns:
        (payment_status, balance_due, paid_at)
    """
    balance_due = final_amount - amount_paid

    if amount_paid >= final_amount:
        return PaymentStatus.PAID, balance_due, paid_at or now
    if amount_paid > 0:
        return PaymentStatus.PARTIAL, balance_due, paid_at
    return requested_status or current_status or PaymentStatus.PENDING, balance_due, paid_at
