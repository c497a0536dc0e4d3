"""
Workshop API application.

Builds the FastAPI app: infrastructure clients from Vault-held URLs,
domain services wired once, then middleware, error handlers and routers.

Run with:
    uvicorn --factory main:create_app
"""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.base import success_response
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.otp_store import OtpStore
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.session import SessionManager
from clients.postgres_client import PostgresClient
from clients.sms_client import LoggingSmsClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_valkey_url
from core.audit import AuditLogger
from core.config import WorkshopConfig
from core.identifiers import IdentifierGenerator
from core.services.booking_service import BookingService
from core.services.catalog_service import CatalogService
from core.services.invoice_service import InvoiceService
from core.services.job_card_service import JobCardService
from core.services.vehicle_history_service import VehicleHistoryService

logger = logging.getLogger(__name__)


def build_services(postgres: PostgresClient, config: WorkshopConfig) -> dict:
    """Construct the domain services, keyed the way the routers expect."""
    audit = AuditLogger(postgres)
    identifiers = IdentifierGenerator(
        postgres,
        timezone_name=config.business_timezone,
        max_attempts=config.identifier_max_attempts,
    )

    catalog = CatalogService(postgres, audit)
    bookings = BookingService(postgres, audit, catalog, identifiers)
    job_cards = JobCardService(postgres, audit, bookings, catalog, identifiers, config)
    invoices = InvoiceService(postgres, audit, job_cards, identifiers, config)

    return {
        "catalog": catalog,
        "booking": bookings,
        "job_card": job_cards,
        "invoice": invoices,
        "vehicle_history": VehicleHistoryService(postgres),
    }


def build_auth_service(
    postgres: PostgresClient,
    valkey: ValkeyClient,
    config: AuthConfig,
    session_manager: SessionManager,
) -> AuthService:
    return AuthService(
        config=config,
        auth_db=AuthDatabase(postgres),
        session_manager=session_manager,
        otp_store=OtpStore(valkey, expiry_seconds=config.otp_expiry_seconds),
        otp_send_limiter=RateLimiter(valkey, config, scope="otp_send"),
        login_limiter=RateLimiter(valkey, config, scope="login"),
        sms_client=LoggingSmsClient(sender_name=config.sms_sender_name),
        security_logger=SecurityLogger(postgres),
    )


def create_app(
    postgres: PostgresClient | None = None,
    valkey: ValkeyClient | None = None,
    auth_config: AuthConfig | None = None,
    workshop_config: WorkshopConfig | None = None,
) -> FastAPI:
    """
    Assemble the application.

    Clients not passed in are connected using URLs from Vault.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    postgres = postgres or PostgresClient(get_database_url())
    valkey = valkey or ValkeyClient(get_valkey_url())
    auth_config = auth_config or AuthConfig()
    workshop_config = workshop_config or WorkshopConfig()

    services = build_services(postgres, workshop_config)
    session_manager = SessionManager(valkey, auth_config)
    auth_service = build_auth_service(postgres, valkey, auth_config, session_manager)

    app = FastAPI(title="Workshop API")
    app.add_middleware(
        AuthMiddleware,
        session_manager=session_manager,
        cookie_name=auth_config.session_cookie_name,
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")
    app.include_router(create_auth_router(auth_service, auth_config), prefix="/auth")

    @app.get("/health")
    async def health():
        postgres.execute_scalar("SELECT 1")
        valkey.ping()
        return success_response({"status": "ok"}).model_dump(mode="json")

    logger.info("Workshop API ready")
    return app

