"""Runtime settings for the pod server, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DAY_SECONDS = 24 * 60 * 60
RETENTION_SECONDS = 12 * 60 * 60


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    """Settings shared by the API, the store client and the expiry flow."""

    db_url: str | None = None
    db_path: str = "dev.db"
    daily_cap: int = 5
    window_seconds: float = DAY_SECONDS
    retention_seconds: float = RETENTION_SECONDS
    resolver: str = "instagram"
    resolver_timeout_s: float = 5.0
    redirect_base: str = "https://instagram.com/p/"

    def __post_init__(self) -> None:
        if self.daily_cap <= 0:
            raise ValueError("daily_cap must be positive")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            db_url=os.getenv("DB_URL") or None,
            db_path=os.getenv("DB_PATH", "dev.db"),
            daily_cap=_int_env("POD_DAILY_CAP", 5),
            window_seconds=_float_env("POD_WINDOW_SECONDS", DAY_SECONDS),
            retention_seconds=_float_env("POD_RETENTION_SECONDS", RETENTION_SECONDS),
            resolver=os.getenv("POD_RESOLVER", "instagram"),
            # Cap lookups at 30s so a slow upstream cannot hold a request open.
            resolver_timeout_s=min(_float_env("POD_RESOLVER_TIMEOUT_S", 5.0), 30.0),
            redirect_base=os.getenv("POD_REDIRECT_BASE", "https://instagram.com/p/"),
        )
