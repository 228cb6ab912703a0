"""FastAPI app wiring the pod components to the HTTP surface."""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Histogram, generate_latest

from adapters.base import ResolverProtocol, get_resolver
from api import posts
from api.models import HealthResponse
from etl.logging_setup import configure_logging
from pod.config import Settings
from pod.errors import NotFound, PodError, StoreUnavailable
from pod.quota import QuotaTracker
from pod.records import RecordStore
from pod.store import StoreClient
from pod.sweeper import ExpirySweeper
from pod.workflow import PublishWorkflow

logger = logging.getLogger(__name__)

HEALTH_CHECK_DURATION = Histogram(
    "health_check_duration_seconds", "Duration of database health checks."
)


def _build_resolver(settings: Settings) -> ResolverProtocol:
    if settings.resolver == "static":
        return get_resolver("static")
    return get_resolver(settings.resolver, timeout=settings.resolver_timeout_s)


def install_components(
    app: FastAPI,
    settings: Settings,
    *,
    store: StoreClient | None = None,
    resolver: ResolverProtocol | None = None,
) -> None:
    """Build the store client and components and attach them to ``app.state``."""
    store = store or StoreClient.from_settings(settings)
    store.ensure_schema()
    records = RecordStore(store)
    quota = QuotaTracker(
        store, daily_cap=settings.daily_cap, window_seconds=settings.window_seconds
    )
    app.state.settings = settings
    app.state.store = store
    app.state.records = records
    app.state.quota = quota
    app.state.sweeper = ExpirySweeper(records, retention_seconds=settings.retention_seconds)
    app.state.workflow = PublishWorkflow(
        resolver or _build_resolver(settings), quota, records
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging("pod-server")
    executor = ThreadPoolExecutor(max_workers=4)
    asyncio.get_running_loop().set_default_executor(executor)
    # Tests install their own components before startup.
    if getattr(app.state, "workflow", None) is None:
        install_components(app, Settings.from_env())
    logger.info("Pod server started")
    try:
        yield
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _status_for(exc: PodError) -> int:
    if isinstance(exc, StoreUnavailable):
        return 503
    if isinstance(exc, NotFound):
        return 404
    # Every other failure is a client-visible rejection.
    return 403


def create_app() -> FastAPI:
    application = FastAPI(title="Pod Server", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]
    )
    application.include_router(posts.router)

    @application.exception_handler(PodError)
    async def _pod_error_handler(_request: Request, exc: PodError) -> JSONResponse:
        return JSONResponse(status_code=_status_for(exc), content={"detail": exc.message})

    @application.get(
        "/health/db",
        summary="Check database connectivity",
        responses={200: {"model": HealthResponse}, 503: {"model": HealthResponse}},
    )
    def health_db() -> JSONResponse:
        """Return database connectivity status and latency."""
        start = time.perf_counter()
        healthy = True
        try:
            with HEALTH_CHECK_DURATION.time():
                application.state.store.ping()
        except StoreUnavailable:
            healthy = False
        latency_ms = int((time.perf_counter() - start) * 1000)
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"healthy": healthy, "latency_ms": latency_ms},
        )

    @application.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()
