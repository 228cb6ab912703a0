"""Pytest configuration for pod server tests.

This conftest.py automatically skips tests marked as `nightly` unless
explicitly requested via `-m nightly` or `--run-nightly`, and provides a
temporary SQLite store plus a controllable clock.
"""

import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for direct package imports.
sys.path.append(str(Path(__file__).resolve().parents[1]))

from pod import quota as quota_module
from pod import records as records_module
from pod import sweeper as sweeper_module
from pod.quota import QuotaTracker
from pod.records import RecordStore
from pod.store import StoreClient


class FakeClock:
    """Stand-in for the ``time`` module with a settable wall clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def time(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    for module in (quota_module, records_module, sweeper_module):
        monkeypatch.setattr(module, "time", fake)
    return fake


@pytest.fixture
def store(tmp_path):
    client = StoreClient(db_path=str(tmp_path / "pod.db"))
    client.ensure_schema()
    return client


@pytest.fixture
def records(store):
    return RecordStore(store)


@pytest.fixture
def quota(store):
    return QuotaTracker(store)


def pytest_configure(config):
    """Register the nightly marker and configure auto-skip."""
    config.addinivalue_line(
        "markers", "nightly: mark test as nightly regression test (skipped by default)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip nightly tests unless explicitly requested."""
    if config.getoption("-m") and "nightly" in config.getoption("-m"):
        return

    if hasattr(config.option, "run_nightly") and config.option.run_nightly:
        return

    skip_nightly = pytest.mark.skip(
        reason="Nightly test skipped (use -m nightly or --run-nightly to run)"
    )
    for item in items:
        if "nightly" in item.keywords:
            item.add_marker(skip_nightly)


def pytest_addoption(parser):
    """Add custom command line option for running nightly tests."""
    parser.addoption(
        "--run-nightly",
        action="store_true",
        default=False,
        help="Run nightly tests",
    )
