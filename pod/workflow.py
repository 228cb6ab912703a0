"""Publish a post: resolve its author, charge the quota, store the record."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial

from prometheus_client import Counter

from adapters.base import ResolverProtocol

from .errors import IdentityResolutionFailure, PodError, QuotaExceeded
from .keys import derive, validate_raw_id
from .quota import QuotaTracker
from .records import RecordStore
from .topics import Mode, Topic

logger = logging.getLogger(__name__)

PUBLISHED = Counter("pod_published_total", "Submissions accepted.", ("topic",))
REJECTED = Counter("pod_rejected_total", "Submissions rejected.", ("reason",))


@dataclass(frozen=True)
class PublishResult:
    key: str
    raw_id: str
    identity: str
    mode: Mode

    def describe(self) -> str:
        return f"hashed: {self.key} actual: {self.raw_id} username: {self.identity}"


class PublishWorkflow:
    """Run the publish checks in order; the first failure stops the rest."""

    def __init__(
        self,
        resolver: ResolverProtocol,
        quota: QuotaTracker,
        records: RecordStore,
    ) -> None:
        self._resolver = resolver
        self._quota = quota
        self._records = records

    async def _run_sync(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def publish(
        self, topic: Topic | str | None, raw_id: str | None, mode: Mode | str | None = None
    ) -> PublishResult:
        try:
            result = await self._publish(topic, raw_id, mode)
        except PodError as exc:
            REJECTED.labels(reason=type(exc).__name__).inc()
            logger.warning(
                "Publish rejected",
                extra={
                    "topic": topic.value if isinstance(topic, Topic) else topic,
                    "raw_id": raw_id,
                    "reason": exc.message,
                },
            )
            raise
        topic_value = Topic.parse(topic).value
        PUBLISHED.labels(topic=topic_value).inc()
        logger.info(
            "New post added to the pod",
            extra={"topic": topic_value, "key": result.key, "identity": result.identity},
        )
        return result

    async def _publish(
        self, topic: Topic | str | None, raw_id: str | None, mode: Mode | str | None
    ) -> PublishResult:
        topic = Topic.parse(topic)
        # Reject malformed ids before they are interpolated into the lookup URL.
        raw_id = validate_raw_id(raw_id)

        identity = await self._resolver.resolve(raw_id)
        if not identity:
            raise IdentityResolutionFailure("Unable to load username")

        if not await self._run_sync(self._quota.admit, identity):
            raise QuotaExceeded(identity)

        current_mode = Mode.normalize(mode)
        key = derive(raw_id)
        await self._run_sync(self._records.upsert, topic, key, raw_id, current_mode)
        return PublishResult(key=key, raw_id=raw_id, identity=identity, mode=current_mode)
