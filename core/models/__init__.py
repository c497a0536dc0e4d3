"""Core domain models."""

from core.models.vehicle import VehicleType, FuelLevel, VehicleDetails
from core.models.service import (
    Service, ServiceCreate, ServiceUpdate, ServiceReference, ServiceExpanded, ServiceRef,
)
from core.models.booking import Booking, BookingCreate, BookingUpdate, BookingDetail, BookingStatus
from core.models.job_card import (
    JobCard, JobCardCreate, JobCardUpdate, JobCardStatus,
    ServiceLineItem, PartLineItem, StatusHistoryEntry, TimelineStep, TrackingView,
)
from core.models.invoice import (
    Invoice, InvoiceCreate, InvoicePaymentUpdate, InvoiceTotals,
    InvoiceServiceLine, InvoicePartLine, PaymentStatus,
)
from core.models.history import ServiceVisit, VehicleRecord, VehicleHistory

__all__ = [
    # Vehicle
    "VehicleType", "FuelLevel", "VehicleDetails",
    # Service
    "Service", "ServiceCreate", "ServiceUpdate", "ServiceReference", "ServiceExpanded", "ServiceRef",
    # Booking
    "Booking", "BookingCreate", "BookingUpdate", "BookingDetail", "BookingStatus",
    # JobCard
    "JobCard", "JobCardCreate", "JobCardUpdate", "JobCardStatus",
    "ServiceLineItem", "PartLineItem", "StatusHistoryEntry", "TimelineStep", "TrackingView",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoicePaymentUpdate", "InvoiceTotals",
    "InvoiceServiceLine", "InvoicePartLine", "PaymentStatus",
    # History
    "ServiceVisit", "VehicleRecord", "VehicleHistory",
]
