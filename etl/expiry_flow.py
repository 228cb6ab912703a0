"""Prefect flow that expires old posts across every topic."""

from __future__ import annotations

import logging

from prefect import flow, task

from etl.logging_setup import configure_logging, log_outcome
from pod.config import Settings
from pod.records import RecordStore
from pod.store import StoreClient
from pod.sweeper import ExpirySweeper, SweepAction
from pod.topics import Topic

logger = logging.getLogger(__name__)


def _build_sweeper(settings: Settings) -> ExpirySweeper:
    store = StoreClient.from_settings(settings)
    store.ensure_schema()
    return ExpirySweeper(RecordStore(store), retention_seconds=settings.retention_seconds)


@task
def sweep_topic(topic: str, settings: Settings) -> list[str]:
    """Sweep one topic and return the reported lines."""
    results = _build_sweeper(settings).sweep(Topic.parse(topic))
    deleted = sum(1 for result in results if result.action is SweepAction.DELETED)
    log_outcome(
        logger,
        f"Swept {topic}",
        has_data=bool(results),
        extra={"topic": topic, "deleted": deleted, "kept": len(results) - deleted},
    )
    return [result.describe() for result in results]


@flow
def expiry_flow(topics: list[str] | None = None) -> dict[str, list[str]]:
    """Run the sweep for each topic; a failed run can simply be repeated."""
    configure_logging("pod-expiry")
    settings = Settings.from_env()
    if topics is None:
        topics = [topic.value for topic in Topic]
    return {topic: sweep_topic(topic, settings) for topic in topics}


if __name__ == "__main__":
    expiry_flow()
