"""Expire submission records older than the retention window."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

from prometheus_client import Counter

from .config import RETENTION_SECONDS
from .records import RecordStore
from .topics import Topic

logger = logging.getLogger(__name__)

SWEPT_RECORDS = Counter(
    "pod_swept_records_total", "Records deleted by the expiry sweep.", ("topic",)
)


class SweepAction(str, Enum):
    DELETED = "deleted"
    KEPT = "kept"


@dataclass(frozen=True)
class SweepResult:
    key: str
    action: SweepAction

    def describe(self) -> str:
        """Render the result the way the expire endpoint reports it."""
        if self.action is SweepAction.DELETED:
            return f"Deleted: {self.key}"
        return f"recent: {self.key}"


class ExpirySweeper:
    """Delete records whose age is strictly greater than the retention.

    Deletions are independent of one another; a sweep interrupted part-way
    leaves a consistent store and re-running it converges.
    """

    def __init__(
        self, records: RecordStore, *, retention_seconds: float = RETENTION_SECONDS
    ) -> None:
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        self._records = records
        self.retention_seconds = retention_seconds

    def sweep(
        self, topic: Topic | str, retention_seconds: float | None = None
    ) -> list[SweepResult]:
        topic = Topic.parse(topic)
        if retention_seconds is None:
            retention = self.retention_seconds
        elif retention_seconds <= 0:
            raise ValueError("retention_seconds must be positive")
        else:
            retention = retention_seconds
        now = time.time()
        results: list[SweepResult] = []
        for record in self._records.list_all(topic):
            age = now - record.last_modified
            if age > retention:
                self._records.delete(topic, record.key)
                SWEPT_RECORDS.labels(topic=topic.value).inc()
                logger.info(
                    "Deleting expired post",
                    extra={"topic": topic.value, "key": record.key, "age_s": int(age)},
                )
                results.append(SweepResult(record.key, SweepAction.DELETED))
            else:
                results.append(SweepResult(record.key, SweepAction.KEPT))
        return results
