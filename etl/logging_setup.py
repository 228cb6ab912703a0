"""Structured logging shared by the API and the expiry flow."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import boto3
from pythonjsonlogger import jsonlogger

DEFAULT_SERVICE = "pod-server"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(service)s %(message)s"

_LOGGING_CONFIGURED = False
_INSTALLED_HANDLERS: list[logging.Handler] = []


class _ServiceFilter(logging.Filter):
    """Stamp every record with the service that emitted it."""

    def __init__(self, service: str | None):
        super().__init__()
        self._service = service or DEFAULT_SERVICE

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self._service
        return True


class CloudWatchHandler(logging.Handler):
    """Buffer log lines and ship them to AWS CloudWatch Logs in batches.

    The buffer is flushed once it holds ``batch_size`` events and again when
    the handler is closed, so short-lived flow runs do not lose their tail.
    """

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        *,
        batch_size: int = 25,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        super().__init__()
        self._log_group = log_group
        self._log_stream = log_stream
        self._batch_size = max(batch_size, 1)
        self._buffer: list[dict[str, Any]] = []
        self._client = boto3.client("logs", region_name=region_name, endpoint_url=endpoint_url)
        self._create_if_missing(
            self._client.create_log_group, logGroupName=log_group
        )
        self._create_if_missing(
            self._client.create_log_stream, logGroupName=log_group, logStreamName=log_stream
        )

    def _create_if_missing(self, create, **kwargs) -> None:
        try:
            create(**kwargs)
        except self._client.exceptions.ResourceAlreadyExistsException:
            pass

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self.acquire()
        try:
            self._buffer.append({"timestamp": int(record.created * 1000), "message": message})
            full = len(self._buffer) >= self._batch_size
        finally:
            self.release()
        if full:
            self.flush()

    def flush(self) -> None:
        self.acquire()
        try:
            events, self._buffer = self._buffer, []
        finally:
            self.release()
        if not events:
            return
        try:
            self._client.put_log_events(
                logGroupName=self._log_group,
                logStreamName=self._log_stream,
                logEvents=events,
            )
        except Exception:
            # Surface shipping failures through the logging error hook.
            self.handleError(logging.makeLogRecord({"msg": "CloudWatch put_log_events failed"}))

    def close(self) -> None:
        self.flush()
        super().close()


def configure_logging(service_name: str | None = None) -> None:
    """Install JSON logging on the root logger, once per process.

    ``LOG_LEVEL`` sets the level; ``CLOUDWATCH_LOG_GROUP`` additionally
    ships records to CloudWatch.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    formatter = jsonlogger.JsonFormatter(_LOG_FORMAT)
    service_filter = _ServiceFilter(service_name)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_group = os.getenv("CLOUDWATCH_LOG_GROUP")
    if log_group:
        log_stream = os.getenv(
            "CLOUDWATCH_LOG_STREAM",
            f"{service_name or DEFAULT_SERVICE}-{int(time.time())}",
        )
        handlers.append(
            CloudWatchHandler(
                log_group,
                log_stream,
                batch_size=int(os.getenv("CLOUDWATCH_BATCH_SIZE", "25")),
                region_name=os.getenv("AWS_REGION"),
                endpoint_url=os.getenv("CLOUDWATCH_ENDPOINT"),
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(service_filter)
        root.addHandler(handler)
        _INSTALLED_HANDLERS.append(handler)

    _LOGGING_CONFIGURED = True


def reset_logging() -> None:
    """Close and remove root handlers so the next configure starts fresh."""
    global _LOGGING_CONFIGURED
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    # Only close our own handlers; test harness handlers belong to pytest.
    while _INSTALLED_HANDLERS:
        _INSTALLED_HANDLERS.pop().close()
    _LOGGING_CONFIGURED = False


def log_outcome(
    logger: logging.Logger,
    message: str,
    *,
    has_data: bool | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log a sweep outcome; runs that found nothing log at warning level."""
    level = logging.INFO
    if has_data is False:
        level = logging.WARNING
    logger.log(level, message, extra=extra)
