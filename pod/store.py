"""Explicit database handle shared by the record store and quota tracker."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from adapters.base import connect_db, psycopg

from .config import Settings
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

_DB_ERRORS: tuple[type[BaseException], ...] = (sqlite3.Error,)
if psycopg is not None:
    _DB_ERRORS = _DB_ERRORS + (psycopg.Error,)

UNAVAILABLE_MESSAGE = "Database service temporarily unavailable"

_SQLITE_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS submissions ("
    "topic TEXT NOT NULL, "
    "key TEXT NOT NULL, "
    "raw_id TEXT NOT NULL, "
    "mode TEXT NOT NULL, "
    "last_modified REAL NOT NULL, "
    "PRIMARY KEY (topic, key))",
    "CREATE TABLE IF NOT EXISTS usage_windows ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "identity TEXT NOT NULL, "
    "count INTEGER NOT NULL DEFAULT 0, "
    "opened_at REAL NOT NULL)",
    "CREATE INDEX IF NOT EXISTS usage_windows_identity_opened "
    "ON usage_windows (identity, opened_at DESC)",
)

_POSTGRES_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS submissions ("
    "topic text NOT NULL, "
    "key text NOT NULL, "
    "raw_id text NOT NULL, "
    "mode text NOT NULL, "
    "last_modified double precision NOT NULL, "
    "PRIMARY KEY (topic, key))",
    "CREATE TABLE IF NOT EXISTS usage_windows ("
    "id bigserial PRIMARY KEY, "
    "identity text NOT NULL, "
    "count integer NOT NULL DEFAULT 0, "
    "opened_at double precision NOT NULL)",
    "CREATE INDEX IF NOT EXISTS usage_windows_identity_opened "
    "ON usage_windows (identity, opened_at DESC)",
)


class StoreClient:
    """Open short-lived connections and translate driver errors.

    Every driver failure surfaces as :class:`StoreUnavailable` with the
    original exception chained; nothing is retried here.
    """

    def __init__(
        self,
        db_url: str | None = None,
        db_path: str = "dev.db",
        *,
        connect_timeout: float | None = 5.0,
    ) -> None:
        self._db_url = db_url
        self._db_path = db_path
        self._connect_timeout = connect_timeout
        self.is_sqlite = not (db_url and psycopg and db_url.startswith("postgres"))

    @classmethod
    def from_settings(cls, settings: Settings) -> StoreClient:
        return cls(settings.db_url, settings.db_path)

    def sql(self, statement: str) -> str:
        """Swap ``?`` placeholders for ``%s`` when talking to Postgres."""
        if self.is_sqlite:
            return statement
        return statement.replace("?", "%s")

    @contextmanager
    def connect(self) -> Iterator[object]:
        try:
            conn = connect_db(
                self._db_url, self._db_path, connect_timeout=self._connect_timeout
            )
        except _DB_ERRORS as exc:
            logger.warning("Database connection failed", extra={"error": str(exc)})
            raise StoreUnavailable(UNAVAILABLE_MESSAGE) from exc
        try:
            yield conn
        except _DB_ERRORS as exc:
            logger.warning("Database statement failed", extra={"error": str(exc)})
            raise StoreUnavailable(UNAVAILABLE_MESSAGE) from exc
        finally:
            conn.close()

    @contextmanager
    def transaction(self, lock_key: str | None = None) -> Iterator[object]:
        """Yield a connection inside a write transaction.

        SQLite takes the database write lock up front (``BEGIN IMMEDIATE``);
        Postgres takes a transaction-scoped advisory lock on ``lock_key``.
        """
        with self.connect() as conn:
            if self.is_sqlite:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
            else:
                with conn.transaction():
                    if lock_key is not None:
                        conn.execute(
                            "SELECT pg_advisory_xact_lock(hashtext(%s))", (lock_key,)
                        )
                    yield conn

    def ensure_schema(self) -> None:
        """Create the submissions and usage window tables if missing."""
        statements = _SQLITE_SCHEMA if self.is_sqlite else _POSTGRES_SCHEMA
        with self.connect() as conn:
            for statement in statements:
                conn.execute(statement)

    def ping(self) -> None:
        """Run a lightweight query to verify connectivity."""
        with self.connect() as conn:
            cursor = conn.execute("SELECT 1")
            # Force the database to return a result so the query truly runs.
            cursor.fetchone()
