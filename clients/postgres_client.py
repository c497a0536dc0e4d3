"""
PostgreSQL access for the workshop services.

psycopg2 with one ThreadedConnectionPool per database URL, shared by every
PostgresClient built for that URL. Each public method runs one statement
on one pooled connection and commits it, so a single statement is the
unit of atomicity; the services lean on that (status_history appends,
COALESCE'd milestones and sequence upserts are all single statements).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.errors
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None

# JSONB columns (status_history, line items, vehicle_details) come back as Python values
psycopg2.extras.register_default_jsonb(globally=True)


def _stringify_uuids(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, list):
        return [_stringify_uuids(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_stringify_uuids(v) for v in value)
    if isinstance(value, dict):
        return {k: _stringify_uuids(v) for k, v in value.items()}
    return value


class PostgresClient:
    """
    Rows come back as plain dicts.

    Usage:
        db = PostgresClient(database_url)
        cards = db.execute("SELECT * FROM job_cards WHERE phone = %s", (phone,))
        invoice = db.execute_single("SELECT * FROM invoices WHERE id = %s", (invoice_id,))
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(
        self,
        database_url: str,
        min_connections: int = 2,
        max_connections: int = 20,
        application_name: str = "workshop-api",
    ):
        self._database_url = database_url
        self._pool_options = {
            "minconn": min_connections,
            "maxconn": max_connections,
            "application_name": application_name,
        }
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    dsn=self._database_url,
                    connect_timeout=30,
                    **self._pool_options,
                )
                self._pools[self._database_url] = pool
                logger.info(
                    "Connection pool created (%d-%d connections)",
                    self._pool_options["minconn"], self._pool_options["maxconn"],
                )
            return pool

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Borrow a pooled connection; roll back if the caller raises."""
        pool = self._pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    @contextmanager
    def _cursor(self, dict_rows: bool = True) -> Iterator[Any]:
        """Cursor whose statement is committed when the block exits cleanly."""
        factory = psycopg2.extras.RealDictCursor if dict_rows else None
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=factory) as cur:
                yield cur
            conn.commit()

    def _convert_params(self, params: Params) -> Params:
        """UUIDs go over the wire as strings, at any nesting depth."""
        return None if params is None else _stringify_uuids(params)

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Rows as dicts; [] for statements without a result set."""
        with self._cursor() as cur:
            cur.execute(query, self._convert_params(params))
            return [dict(row) for row in cur.fetchall()] if cur.description else []

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """First column of the first row, or None."""
        with self._cursor(dict_rows=False) as cur:
            cur.execute(query, self._convert_params(params))
            row = cur.fetchone()
            return row[0] if row else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """INSERT/UPDATE ... RETURNING rows."""
        with self._cursor() as cur:
            cur.execute(query, self._convert_params(params))
            return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()

    @classmethod
    def close_all_pools(cls) -> None:
        with cls._pools_lock:
            for pool in cls._pools.values():
                pool.closeall()
            cls._pools.clear()


def unique_violation_constraint(exc: Exception) -> str | None:
    """Name of the UNIQUE constraint a failed statement tripped, if any."""
    if isinstance(exc, psycopg2.errors.UniqueViolation):
        return exc.diag.constraint_name
    return None
