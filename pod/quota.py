"""Per-identity daily submission quota backed by the usage window log.

Each identity owns an append-only log of windows. Only the most recently
opened window is consulted: once it is older than the window length a new
one is opened rather than reusing the old row. The read-check-increment runs
in a per-identity write transaction, and the increment itself is a
conditional update guarded by the cap, so racing callers cannot push the
count past the limit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from .config import DAY_SECONDS
from .store import StoreClient

logger = logging.getLogger(__name__)

DAILY_CAP = 5


@dataclass(frozen=True)
class UsageWindow:
    id: int
    identity: str
    count: int
    opened_at: float


class QuotaTracker:
    """Admit or deny submissions for an identity under a rolling daily cap."""

    def __init__(
        self,
        store: StoreClient,
        *,
        daily_cap: int = DAILY_CAP,
        window_seconds: float = DAY_SECONDS,
    ) -> None:
        if daily_cap <= 0:
            raise ValueError("daily_cap must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._store = store
        self.daily_cap = daily_cap
        self.window_seconds = window_seconds

    def _latest_window(self, conn, identity: str) -> UsageWindow | None:
        row = conn.execute(
            self._store.sql(
                "SELECT id, identity, count, opened_at FROM usage_windows "
                "WHERE identity = ? ORDER BY opened_at DESC, id DESC LIMIT 1"
            ),
            (identity,),
        ).fetchone()
        if row is None:
            return None
        return UsageWindow(
            id=int(row[0]), identity=row[1], count=int(row[2]), opened_at=float(row[3])
        )

    def _is_expired(self, window: UsageWindow, now: float) -> bool:
        return now - window.opened_at > self.window_seconds

    def admit(self, identity: str) -> bool:
        """Return True and record the submission when the identity has budget.

        Raises ``StoreUnavailable`` when the database cannot be reached;
        callers must treat that as a denial.
        """
        now = time.time()
        with self._store.transaction(lock_key=identity) as conn:
            window = self._latest_window(conn, identity)
            if window is None or self._is_expired(window, now):
                # The submission that opens a window counts against it.
                conn.execute(
                    self._store.sql(
                        "INSERT INTO usage_windows (identity, count, opened_at) "
                        "VALUES (?, ?, ?)"
                    ),
                    (identity, 1, now),
                )
                logger.info(
                    "Opened usage window", extra={"identity": identity, "count": 1}
                )
                return True
            if window.count >= self.daily_cap:
                logger.info(
                    "Daily cap reached",
                    extra={"identity": identity, "count": window.count},
                )
                return False
            cursor = conn.execute(
                self._store.sql(
                    "UPDATE usage_windows SET count = count + 1 "
                    "WHERE id = ? AND count < ?"
                ),
                (window.id, self.daily_cap),
            )
            return cursor.rowcount == 1

    def usage(self, identity: str) -> UsageWindow | None:
        """Return the active window for ``identity`` or None if none is open."""
        now = time.time()
        with self._store.connect() as conn:
            window = self._latest_window(conn, identity)
        if window is None or self._is_expired(window, now):
            return None
        return window

