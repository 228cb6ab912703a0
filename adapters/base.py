"""Utility helpers for adapters."""

from __future__ import annotations

import sqlite3
from importlib import import_module
from typing import Protocol

try:
    import psycopg
except ImportError:  # pragma: no cover - optional dependency
    psycopg = None


class ResolverProtocol(Protocol):
    async def resolve(self, raw_id: str) -> str | None: ...


def connect_db(
    db_url: str | None = None,
    db_path: str = "dev.db",
    *,
    connect_timeout: float | None = None,
):
    """Return a database connection to SQLite or Postgres."""
    if db_url and psycopg and db_url.startswith("postgres"):
        # Transactions are opened explicitly by the store client.
        connect_kwargs = {"autocommit": True}
        if connect_timeout is not None:
            connect_kwargs["connect_timeout"] = connect_timeout
        return psycopg.connect(db_url, **connect_kwargs)
    sqlite_kwargs = {"isolation_level": None, "check_same_thread": False}
    if connect_timeout is not None:
        sqlite_kwargs["timeout"] = connect_timeout
    return sqlite3.connect(str(db_path), **sqlite_kwargs)


class StaticResolver:
    """Resolve post ids from a fixed mapping; used for local runs and tests."""

    def __init__(self, identities: dict[str, str] | None = None) -> None:
        self._identities = dict(identities or {})

    async def resolve(self, raw_id: str) -> str | None:
        return self._identities.get(raw_id)


RESOLVERS: dict[str, type] = {}


def get_resolver(name: str, **kwargs) -> ResolverProtocol:
    """Build the resolver registered for ``name``.

    ``static`` maps to :class:`StaticResolver`; any other name is imported
    from ``adapters.<name>`` and must expose a ``Resolver`` class.
    """
    if name == "static":
        return StaticResolver(kwargs.get("identities"))
    if name not in RESOLVERS:
        module = import_module(f"adapters.{name}")
        RESOLVERS[name] = module.Resolver
    return RESOLVERS[name](**kwargs)
