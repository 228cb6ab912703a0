import pytest

from pod.config import DAY_SECONDS, RETENTION_SECONDS, Settings


def test_defaults(monkeypatch):
    for name in (
        "DB_URL",
        "DB_PATH",
        "POD_DAILY_CAP",
        "POD_WINDOW_SECONDS",
        "POD_RETENTION_SECONDS",
        "POD_RESOLVER",
        "POD_RESOLVER_TIMEOUT_S",
        "POD_REDIRECT_BASE",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.db_url is None
    assert settings.db_path == "dev.db"
    assert settings.daily_cap == 5
    assert settings.window_seconds == DAY_SECONDS
    assert settings.retention_seconds == RETENTION_SECONDS == 12 * 60 * 60
    assert settings.resolver == "instagram"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/tmp/pod.db")
    monkeypatch.setenv("POD_DAILY_CAP", "3")
    monkeypatch.setenv("POD_RETENTION_SECONDS", "60")
    monkeypatch.setenv("POD_RESOLVER_TIMEOUT_S", "120")
    settings = Settings.from_env()
    assert settings.db_path == "/tmp/pod.db"
    assert settings.daily_cap == 3
    assert settings.retention_seconds == 60.0
    # Lookups are capped so a slow upstream cannot hold requests open.
    assert settings.resolver_timeout_s == 30.0


def test_rejects_non_positive_cap(monkeypatch):
    monkeypatch.setenv("POD_DAILY_CAP", "0")
    with pytest.raises(ValueError):
        Settings.from_env()
