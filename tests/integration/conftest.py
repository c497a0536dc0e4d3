"""Fixtures for tests that run against a real PostgreSQL database.

The database URL comes from Vault, as in production. Without Vault
credentials in the environment (or .env) these tests are skipped.
"""

import os
from pathlib import Path

import pytest

import clients.vault_client as vault_module
from core.config import WorkshopConfig

SCHEMA_FILE = Path(__file__).parent.parent.parent / "schema" / "workshop.sql"


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient on the Vault-provided database."""
    if not os.getenv("VAULT_ADDR"):
        pytest.skip("VAULT_ADDR not set; no database to test against")

    from clients.postgres_client import PostgresClient

    # Pick up credentials loaded from .env by the root conftest
    vault_module._vault_client_instance = None
    vault_module.clear_secret_cache()

    client = PostgresClient(vault_module.get_database_url())
    if client.execute_scalar("SELECT to_regclass('public.job_cards')") is None:
        client.execute(SCHEMA_FILE.read_text())
    yield client
    client.close()


@pytest.fixture(autouse=True)
def reset_db_state(db):
    """Empty the workshop tables before each test."""
    db.execute("""
        TRUNCATE
            invoices, job_cards, bookings, services,
            document_sequences, audit_log
        CASCADE
    """)


@pytest.fixture
def services(db):
    from main import build_services

    return build_services(db, WorkshopConfig())
