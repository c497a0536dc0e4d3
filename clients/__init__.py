"""Infrastructure clients: PostgreSQL, Valkey, Vault and SMS delivery."""

from clients.postgres_client import PostgresClient, unique_violation_constraint
from clients.valkey_client import ValkeyClient
from clients.vault_client import VaultClient, VaultError, get_database_url, get_valkey_url
from clients.sms_client import LoggingSmsClient
