"""
Valkey (Redis-compatible) store for sessions, OTP digests and rate-limit counters.

Everything the workshop keeps here is short-lived and written with a TTL.
Connection problems raise; callers never get a silent fallback value.
"""

import json
import logging
from typing import Any

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    redis-py client with decoded (str) responses.

    Usage:
        valkey = ValkeyClient("redis://localhost:6379/0")
        valkey.set("otp:9876543210", digest, expire_seconds=300)
        valkey.delete("otp:9876543210")  # True for the one caller that removed it
    """

    def __init__(self, url: str):
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("Connected to Valkey")

    def ping(self) -> bool:
        """Raises redis.ConnectionError when the server is unreachable."""
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        if expire_seconds is None:
            self._client.set(key, value)
        else:
            self._client.setex(key, expire_seconds, value)

    def delete(self, key: str) -> bool:
        """
        Remove key. True only if this call removed it, so concurrent
        consumers of the same key see exactly one winner.
        """
        return self._client.delete(key) > 0

    def ttl(self, key: str) -> int:
        """Seconds left; -2 for a missing key, -1 for a key without expiry."""
        return self._client.ttl(key)

    def incr_with_expiry(self, key: str, expire_seconds: int) -> int:
        """
        Increment a counter and (re)arm its TTL in one MULTI/EXEC.

        Returns the counter value after the increment. A fresh key starts at 1.
        """
        pipe = self._client.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, expire_seconds)
        count, _ = pipe.execute()
        return count

    def set_json(self, key: str, value: Any, expire_seconds: int | None = None) -> None:
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> Any:
        """Decoded JSON value, None if the key is missing.

        Raises ValueError if the stored value is not JSON.
        """
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}") from e

    def close(self) -> None:
        self._client.close()
        logger.info("Valkey connection closed")
