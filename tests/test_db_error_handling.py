"""Test database error handling and graceful degradation."""

from __future__ import annotations

import asyncio
import sqlite3
import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from adapters.base import StaticResolver
from api.app import create_app, install_components
from pod.config import Settings
from pod.errors import StoreUnavailable
from pod.store import StoreClient


def _broken_app(tmp_path, monkeypatch, error: Exception):
    application = create_app()
    settings = Settings(db_path=str(tmp_path / "pod.db"), resolver="static")
    install_components(application, settings, resolver=StaticResolver({"abc": "grace"}))

    def mock_connect_db(*args, **kwargs):
        raise error

    monkeypatch.setattr("pod.store.connect_db", mock_connect_db)
    return application


async def _request(application, method: str, url: str, params: dict | None = None):
    async with application.router.lifespan_context(application):
        transport = httpx.ASGITransport(app=application)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://test", timeout=5.0
        ) as client:
            return await client.request(method, url, params=params)


def _assert_unavailable(response) -> None:
    assert response.status_code == 503
    data = response.json()
    assert data["detail"] == "Database service temporarily unavailable"
    # Ensure no internal error details are exposed
    assert "sqlite3" not in str(data).lower()
    assert "OperationalError" not in str(data)


@pytest.mark.parametrize(
    ("method", "url", "params"),
    [
        ("GET", "/posts/recent", {"topic": "food"}),
        ("GET", "/posts/recent/full", {"topic": "food"}),
        ("POST", "/posts/expire", {"topic": "food"}),
        ("GET", "/posts/food/somekey", None),
        ("GET", "/quota/grace", None),
    ],
)
def test_endpoints_return_503_when_database_unreachable(
    tmp_path, monkeypatch, method, url, params
):
    application = _broken_app(
        tmp_path, monkeypatch, sqlite3.OperationalError("disk I/O error")
    )
    response = asyncio.run(_request(application, method, url, params))
    _assert_unavailable(response)


def test_publish_rejects_with_403_when_database_unreachable(tmp_path, monkeypatch):
    application = _broken_app(
        tmp_path, monkeypatch, sqlite3.OperationalError("disk I/O error")
    )
    response = asyncio.run(
        _request(
            application, "POST", "/posts/publish", {"postid": "abc", "topic": "food"}
        )
    )
    assert response.status_code == 403
    data = response.json()
    assert data["detail"] == "Database service temporarily unavailable"
    assert "disk I/O" not in str(data)
    assert "OperationalError" not in str(data)


def test_health_db_reports_unhealthy(tmp_path, monkeypatch):
    application = _broken_app(
        tmp_path, monkeypatch, sqlite3.OperationalError("database is locked")
    )
    response = asyncio.run(_request(application, "GET", "/health/db"))
    assert response.status_code == 503
    assert response.json()["healthy"] is False


def test_health_db_reports_healthy(tmp_path):
    application = create_app()
    settings = Settings(db_path=str(tmp_path / "pod.db"), resolver="static")
    install_components(application, settings, resolver=StaticResolver())
    response = asyncio.run(_request(application, "GET", "/health/db"))
    assert response.status_code == 200
    assert response.json()["healthy"] is True


def test_store_client_chains_driver_error(tmp_path, monkeypatch):
    original = sqlite3.OperationalError("unable to open database file")

    def mock_connect_db(*args, **kwargs):
        raise original

    monkeypatch.setattr("pod.store.connect_db", mock_connect_db)
    client = StoreClient(db_path=str(tmp_path / "pod.db"))
    with pytest.raises(StoreUnavailable) as excinfo:
        client.ping()
    assert excinfo.value.__cause__ is original


def test_failed_statement_rolls_back_transaction(tmp_path):
    client = StoreClient(db_path=str(tmp_path / "pod.db"))
    client.ensure_schema()
    with pytest.raises(StoreUnavailable):
        with client.transaction() as conn:
            conn.execute(
                "INSERT INTO usage_windows (identity, count, opened_at) VALUES (?, ?, ?)",
                ("grace", 1, 0.0),
            )
            conn.execute("INSERT INTO missing_table VALUES (1)")
    with client.connect() as conn:
        assert conn.execute("SELECT COUNT(*) FROM usage_windows").fetchone() == (0,)
