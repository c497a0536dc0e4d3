"""Shared test fixtures for the workshop test suite.

Infrastructure is replaced with test doubles: PostgresClient with a
spec'd Mock, ValkeyClient with an in-memory fake that honours the same
contract (TTLs, claim-by-delete, counters that re-arm their TTL).
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

from clients.postgres_client import PostgresClient
from utils.user_context import user_context, clear_current_user_id


# =============================================================================
# TEST CONSTANTS
# =============================================================================

ADMIN_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
CUSTOMER_USER_ID = UUID("00000000-0000-0000-0000-000000000002")
SERVICE_ID = UUID("00000000-0000-0000-0000-0000000000a1")
BOOKING_UUID = UUID("00000000-0000-0000-0000-0000000000b1")
JOB_CARD_UUID = UUID("00000000-0000-0000-0000-0000000000c1")
INVOICE_UUID = UUID("00000000-0000-0000-0000-0000000000d1")

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user_id()
    yield
    clear_current_user_id()


@pytest.fixture
def admin_user_id() -> UUID:
    return ADMIN_USER_ID


@pytest.fixture
def customer_user_id() -> UUID:
    return CUSTOMER_USER_ID


@pytest.fixture
def as_admin(admin_user_id):
    """Run the test with the admin as the acting user."""
    with user_context(admin_user_id):
        yield admin_user_id


# =============================================================================
# INFRASTRUCTURE DOUBLES
# =============================================================================


class FakeValkey:
    """In-memory stand-in for ValkeyClient.

    TTLs are recorded but never elapse on their own; tests call
    expire_now(key) to simulate expiry.
    """

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def ping(self) -> bool:
        return True

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, expire_seconds=None):
        self.store[key] = value
        if expire_seconds is not None:
            self.ttls[key] = expire_seconds
        else:
            self.ttls.pop(key, None)

    def delete(self, key):
        self.ttls.pop(key, None)
        return self.store.pop(key, None) is not None

    def ttl(self, key):
        if key not in self.store:
            return -2
        return self.ttls.get(key, -1)

    def incr_with_expiry(self, key, expire_seconds):
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        self.ttls[key] = expire_seconds
        return value

    def set_json(self, key, value, expire_seconds=None):
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key):
        value = self.get(key)
        return None if value is None else json.loads(value)

    def close(self):
        pass

    def expire_now(self, key):
        """Drop a key as if its TTL ran out."""
        self.delete(key)


@pytest.fixture
def valkey():
    """In-memory ValkeyClient double."""
    return FakeValkey()


@pytest.fixture
def db():
    """PostgresClient mock; tests script return values per query."""
    return Mock(spec=PostgresClient)


# =============================================================================
# ROW BUILDERS
# =============================================================================


class Rows:
    """Database rows as PostgresClient returns them (RealDictCursor dicts)."""

    SERVICE_ID = SERVICE_ID
    BOOKING_UUID = BOOKING_UUID
    JOB_CARD_UUID = JOB_CARD_UUID
    INVOICE_UUID = INVOICE_UUID
    NOW = FIXED_NOW

    @staticmethod
    def service(**overrides) -> dict:
        row = {
            "id": SERVICE_ID,
            "name": "General Service",
            "slug": "general-service",
            "short_description": "Complete periodic maintenance",
            "full_description": "Oil change, filter replacement and a 40-point inspection.",
            "vehicle_types": ["2W", "4W"],
            "base_price": Decimal("2500"),
            "estimated_time": "3-4 hours",
            "features": ["Oil change", "Filter replacement"],
            "is_active": True,
            "display_order": 1,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
            "deleted_at": None,
        }
        row.update(overrides)
        return row

    @staticmethod
    def booking(**overrides) -> dict:
        row = {
            "id": BOOKING_UUID,
            "booking_id": "RMW-2025-0001",
            "customer_name": "Ravi Kumar",
            "phone": "9876543210",
            "email": "ravi@example.com",
            "vehicle_type": "4W",
            "vehicle_brand": "Maruti",
            "vehicle_model": "Swift",
            "vehicle_number": "KA01AB1234",
            "service_id": SERVICE_ID,
            "preferred_date": FIXED_NOW.date(),
            "preferred_time": "10:00 AM",
            "notes": None,
            "status": "pending",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        row.update(overrides)
        return row

    @staticmethod
    def job_card(**overrides) -> dict:
        row = {
            "id": JOB_CARD_UUID,
            "job_card_number": "JC-2025-0001",
            "booking_id": None,
            "customer_name": "Ravi Kumar",
            "phone": "9876543210",
            "email": None,
            "vehicle_type": "4W",
            "vehicle_brand": "Maruti",
            "vehicle_model": "Swift",
            "vehicle_number": "KA01AB1234",
            "vehicle_color": "White",
            "odometer_reading": 42000,
            "fuel_level": "half",
            "services_requested": [
                {
                    "service_id": str(SERVICE_ID),
                    "name": "General Service",
                    "description": "",
                    "estimated_cost": "2500",
                    "actual_cost": "0",
                }
            ],
            "parts_used": [],
            "labour_charges": Decimal("0"),
            "mechanic_assigned": None,
            "service_advisor": None,
            "status": "received",
            "status_history": [
                {"status": "received", "timestamp": FIXED_NOW.isoformat(), "note": "Vehicle received"}
            ],
            "estimated_delivery": None,
            "estimated_total": Decimal("2500"),
            "final_total": Decimal("0"),
            "customer_notes": None,
            "internal_notes": None,
            "received_at": FIXED_NOW,
            "diagnosis_completed_at": None,
            "repair_started_at": None,
            "ready_at": None,
            "delivered_at": None,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
            "deleted_at": None,
        }
        row.update(overrides)
        return row

    @staticmethod
    def invoice(**overrides) -> dict:
        row = {
            "id": INVOICE_UUID,
            "invoice_number": "INV-2025-0001",
            "job_card_id": JOB_CARD_UUID,
            "customer_name": "Ravi Kumar",
            "phone": "9876543210",
            "email": None,
            "address": None,
            "vehicle_details": {"type": "4W", "brand": "Maruti", "model": "Swift", "number": "KA01AB1234"},
            "services": [
                {"name": "General Service", "description": "", "quantity": 1, "rate": "2500", "amount": "2500"}
            ],
            "parts": [],
            "labour_charges": Decimal("0"),
            "subtotal": Decimal("2500"),
            "discount_percent": Decimal("0"),
            "discount_amount": Decimal("0"),
            "taxable_amount": Decimal("2500"),
            "cgst_percent": Decimal("9"),
            "cgst_amount": Decimal("225"),
            "sgst_percent": Decimal("9"),
            "sgst_amount": Decimal("225"),
            "total_tax": Decimal("450"),
            "grand_total": Decimal("2950"),
            "round_off": Decimal("0"),
            "final_amount": Decimal("2950"),
            "payment_status": "pending",
            "payment_method": None,
            "amount_paid": Decimal("0"),
            "balance_due": Decimal("2950"),
            "notes": None,
            "terms_and_conditions": "Standard terms",
            "generated_at": FIXED_NOW,
            "paid_at": None,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        row.update(overrides)
        return row


@pytest.fixture
def rows():
    """Row builders for scripting the PostgresClient mock."""
    return Rows
