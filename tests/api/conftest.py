"""API test fixtures - TestClient over mocked services and sessions."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.exceptions import SessionExpiredError
from auth.security_middleware import AuthMiddleware
from auth.session import SessionManager
from auth.types import Session, UserRole
from core.services.booking_service import BookingService
from core.services.catalog_service import CatalogService
from core.services.invoice_service import InvoiceService
from core.services.job_card_service import JobCardService
from core.services.vehicle_history_service import VehicleHistoryService
from utils.timezone import now_utc

ADMIN_TOKEN = "admin-token"
CUSTOMER_TOKEN = "customer-token"


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services():
    """Spec'd mocks; each test scripts the calls it needs."""
    return {
        "catalog": Mock(spec=CatalogService),
        "booking": Mock(spec=BookingService),
        "job_card": Mock(spec=JobCardService),
        "invoice": Mock(spec=InvoiceService),
        "vehicle_history": Mock(spec=VehicleHistoryService),
    }


# =============================================================================
# AUTH FIXTURES
# =============================================================================


def _session(token: str, user_id, role: UserRole) -> Session:
    now = now_utc()
    return Session(
        token=token,
        user_id=user_id,
        role=role,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )


@pytest.fixture
def mock_session_manager(admin_user_id, customer_user_id):
    sessions = {
        ADMIN_TOKEN: _session(ADMIN_TOKEN, admin_user_id, UserRole.ADMIN),
        CUSTOMER_TOKEN: _session(CUSTOMER_TOKEN, customer_user_id, UserRole.CUSTOMER),
    }

    def validate(token):
        if token not in sessions:
            raise SessionExpiredError("Session not found or expired")
        return sessions[token]

    mock = Mock(spec=SessionManager)
    mock.validate_session.side_effect = validate
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(mock_session_manager, services):
    """FastAPI app with auth middleware, error handlers, and data/actions routes."""
    from api.data import create_data_router
    from api.actions import create_actions_router

    app = FastAPI()
    app.add_middleware(AuthMiddleware, session_manager=mock_session_manager)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app


@pytest.fixture
def admin_client(app):
    """Staff client authenticated with a Bearer token."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers["Authorization"] = f"Bearer {ADMIN_TOKEN}"
    return c


@pytest.fixture
def customer_client(app):
    """Customer client authenticated through the session cookie."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("rmw_session", CUSTOMER_TOKEN)
    return c


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    return TestClient(app, raise_server_exceptions=False)
