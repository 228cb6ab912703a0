"""Post listing, publishing, expiry and redirect endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response

from api.models import PostRecordResponse, QuotaResponse
from pod.errors import StoreUnavailable
from pod.topics import Topic

router = APIRouter()

_TOPIC_DESCRIPTION = "Topic: one of " + ", ".join(topic.value for topic in Topic)


def _state(request: Request):
    return request.app.state


@router.get(
    "/posts/recent",
    summary="List recent post ids",
    description="Return the raw post id of every record stored under the topic.",
)
def recent_posts(
    request: Request, topic: str | None = Query(None, description=_TOPIC_DESCRIPTION)
) -> list[str]:
    records = _state(request).records.list_all(Topic.parse(topic))
    return [record.raw_id for record in records]


@router.get(
    "/posts/recent/full",
    summary="List recent posts",
    description="Return every record stored under the topic.",
)
def recent_posts_full(
    request: Request, topic: str | None = Query(None, description=_TOPIC_DESCRIPTION)
) -> list[PostRecordResponse]:
    records = _state(request).records.list_all(Topic.parse(topic))
    return [PostRecordResponse.from_record(record) for record in records]


@router.api_route(
    "/posts/publish",
    methods=["GET", "POST"],
    response_class=PlainTextResponse,
    summary="Publish a post to the pod",
)
async def publish_post(
    request: Request,
    postid: str | None = Query(None, description="Externally issued post id"),
    topic: str | None = Query(None, description=_TOPIC_DESCRIPTION),
    mode: str | None = Query(None, description="light, normal or heavy"),
) -> Response:
    """Resolve the author, charge their quota and store the post.

    Every workflow failure is a 403 here, store outages included.
    """
    try:
        result = await _state(request).workflow.publish(topic, postid, mode)
    except StoreUnavailable as exc:
        return JSONResponse(status_code=403, content={"detail": exc.message})
    return PlainTextResponse(result.describe())


@router.api_route(
    "/posts/expire",
    methods=["GET", "POST"],
    summary="Delete expired posts",
    description="Delete records older than the retention window and report each key.",
)
def expire_posts(
    request: Request, topic: str | None = Query(None, description=_TOPIC_DESCRIPTION)
) -> list[str]:
    results = _state(request).sweeper.sweep(Topic.parse(topic))
    return [result.describe() for result in results]


@router.get(
    "/posts/{topic}/{key}",
    summary="Redirect to a stored post",
    response_class=RedirectResponse,
)
def redirect_to_post(request: Request, topic: str, key: str) -> RedirectResponse:
    state = _state(request)
    record = state.records.get(Topic.parse(topic), key)
    return RedirectResponse(f"{state.settings.redirect_base}{record.raw_id}")


@router.get("/quota/{identity}", summary="Show an identity's daily quota")
def quota_usage(request: Request, identity: str) -> QuotaResponse:
    quota = _state(request).quota
    window = quota.usage(identity)
    count = window.count if window is not None else 0
    return QuotaResponse(
        identity=identity,
        count=count,
        remaining=max(quota.daily_cap - count, 0),
        daily_cap=quota.daily_cap,
        opened_at=window.opened_at if window is not None else None,
    )
