"""Submission records keyed by topic and derived key."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any

from .errors import InvalidId, NotFound
from .keys import derive
from .store import StoreClient
from .topics import DEFAULT_MODE, Mode, Topic

_COLUMNS = "topic, key, raw_id, mode, last_modified"


@dataclass(frozen=True)
class SubmissionRecord:
    """One accepted submission; ``key`` is always ``derive(raw_id)``."""

    topic: Topic
    key: str
    raw_id: str
    mode: Mode
    last_modified: float

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["topic"] = self.topic.value
        payload["mode"] = self.mode.value
        return payload


def _row_to_record(row) -> SubmissionRecord:
    topic, key, raw_id, mode, last_modified = row
    return SubmissionRecord(
        topic=Topic(topic),
        key=key,
        raw_id=raw_id,
        mode=Mode.normalize(mode),
        last_modified=float(last_modified),
    )


class RecordStore:
    """Per-topic keyed storage of submission records.

    Topic validation happens before any connection is opened, so an invalid
    topic never reaches the database.
    """

    def __init__(self, store: StoreClient) -> None:
        self._store = store

    def upsert(
        self,
        topic: Topic | str,
        key: str,
        raw_id: str,
        mode: Mode | str | None = DEFAULT_MODE,
    ) -> SubmissionRecord:
        """Insert or overwrite the record at ``(topic, key)``."""
        topic = Topic.parse(topic)
        if derive(raw_id) != key:
            raise InvalidId(f"Key {key!r} does not match post id {raw_id!r}.")
        record = SubmissionRecord(
            topic=topic,
            key=key,
            raw_id=raw_id.strip(),
            mode=Mode.normalize(mode),
            last_modified=time.time(),
        )
        statement = self._store.sql(
            f"INSERT INTO submissions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT (topic, key) DO UPDATE SET "
            "raw_id = excluded.raw_id, "
            "mode = excluded.mode, "
            "last_modified = excluded.last_modified"
        )
        with self._store.connect() as conn:
            conn.execute(
                statement,
                (
                    record.topic.value,
                    record.key,
                    record.raw_id,
                    record.mode.value,
                    record.last_modified,
                ),
            )
        return record

    def get(self, topic: Topic | str, key: str) -> SubmissionRecord:
        topic = Topic.parse(topic)
        statement = self._store.sql(
            f"SELECT {_COLUMNS} FROM submissions WHERE topic = ? AND key = ?"
        )
        with self._store.connect() as conn:
            row = conn.execute(statement, (topic.value, key)).fetchone()
        if row is None:
            raise NotFound(f"No post stored under key {key!r} in topic {topic.value}.")
        return _row_to_record(row)

    def list_all(self, topic: Topic | str) -> list[SubmissionRecord]:
        """Return every record in ``topic``; order is unspecified."""
        topic = Topic.parse(topic)
        statement = self._store.sql(f"SELECT {_COLUMNS} FROM submissions WHERE topic = ?")
        with self._store.connect() as conn:
            rows = conn.execute(statement, (topic.value,)).fetchall()
        return [_row_to_record(row) for row in rows]

    def delete(self, topic: Topic | str, key: str) -> None:
        """Remove the record if present; missing keys are ignored."""
        topic = Topic.parse(topic)
        statement = self._store.sql("DELETE FROM submissions WHERE topic = ? AND key = ?")
        with self._store.connect() as conn:
            conn.execute(statement, (topic.value, key))
