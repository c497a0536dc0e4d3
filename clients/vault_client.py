"""
Secrets for the workshop API, read from HashiCorp Vault (KV v2).

The process logs in with AppRole credentials from the environment and
only ever reads below the 'workshop/' mount path. Secrets are fetched
once per process and cached; a missing or unreadable secret is fatal.
"""

import logging
import os

import hvac
from hvac.exceptions import Forbidden, InvalidPath, Unauthorized

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "workshop"

# name -> (path under workshop/, field)
KNOWN_SECRETS: dict[str, tuple[str, str]] = {
    "database_url": ("database", "url"),
    "valkey_url": ("valkey", "url"),
}

_vault_client_instance: "VaultClient | None" = None
_secret_cache: dict[str, str] = {}


class VaultError(Exception):
    """Vault could not supply a secret. The API cannot start without it."""


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} environment variable is required")
    return value


class VaultClient:
    """AppRole-authenticated reader for secrets under workshop/."""

    def __init__(self, vault_addr: str | None = None, vault_namespace: str | None = None):
        self.vault_addr = vault_addr or _required_env("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")

        role_id, secret_id = os.getenv("VAULT_ROLE_ID"), os.getenv("VAULT_SECRET_ID")
        if not role_id or not secret_id:
            raise ValueError("VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required")

        options = {"url": self.vault_addr}
        if self.vault_namespace:
            options["namespace"] = self.vault_namespace
        self.client = hvac.Client(**options)

        try:
            login = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except (Unauthorized, Forbidden) as e:
            logger.error("AppRole login rejected: %s", e)
            raise VaultError(f"AppRole authentication failed: {e}") from e
        self.client.token = login["auth"]["client_token"]

        if not self.client.is_authenticated():
            raise VaultError("Vault authentication failed")

        logger.info("Authenticated to Vault at %s", self.vault_addr)

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of the KV v2 secret at workshop/<path>.

        Raises:
            VaultError: The path is missing or this role may not read it.
            KeyError: The secret has no such field.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath as e:
            raise VaultError(f"Secret path '{full_path}' not found in Vault") from e
        except (Unauthorized, Forbidden) as e:
            raise VaultError(f"Access denied to secret '{full_path}'") from e

        data = response["data"]["data"]
        try:
            return data[field]
        except KeyError:
            raise KeyError(
                f"Field '{field}' not found in secret '{full_path}'. "
                f"Available: {', '.join(data)}"
            ) from None


def _shared_client() -> VaultClient:
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


def get_named_secret(name: str) -> str:
    """Cached value of one of KNOWN_SECRETS."""
    if name not in _secret_cache:
        path, field = KNOWN_SECRETS[name]
        _secret_cache[name] = _shared_client().get_secret(path, field)
    return _secret_cache[name]


def clear_secret_cache() -> None:
    """Drop cached secrets so the next lookup re-reads Vault (after rotation)."""
    _secret_cache.clear()


def get_database_url() -> str:
    return get_named_secret("database_url")


def get_valkey_url() -> str:
    return get_named_secret("valkey_url")
