"""Instagram adapter resolving a post id to its author's handle."""

from __future__ import annotations

import logging
import re
from threading import Lock

import httpx
from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

BASE_URL = "https://www.instagram.com"

_HANDLE_RE = re.compile(r'"alternateName":"@([^"]+)"')


def extract_handle(page: str) -> str | None:
    """Return the author handle embedded in a post page, if any."""
    match = _HANDLE_RE.search(page)
    if match is None:
        return None
    return match.group(1)


class Resolver:
    """Look up post authors over HTTP, caching handles per post id.

    A post's author never changes, so resolved handles are cached; misses
    and failures are not.
    """

    def __init__(
        self,
        *,
        base_url: str = BASE_URL,
        timeout: float = 5.0,
        cache_ttl: int = 3600,
        cache_size: int = 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)
        self._cache_lock = Lock()

    async def _fetch_post_page(self, raw_id: str) -> httpx.Response:
        url = f"{self._base_url}/p/{raw_id}/"
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport, follow_redirects=True
        ) as client:
            return await client.get(url)

    async def resolve(self, raw_id: str) -> str | None:
        with self._cache_lock:
            cached = self._cache.get(raw_id)
        if cached is not None:
            return cached
        try:
            response = await self._fetch_post_page(raw_id)
        except httpx.RequestError as exc:
            logger.warning(
                "Identity lookup failed", extra={"raw_id": raw_id, "error": str(exc)}
            )
            return None
        if response.status_code != 200:
            logger.warning(
                "Identity lookup returned non-200",
                extra={"raw_id": raw_id, "status": response.status_code},
            )
            return None
        handle = extract_handle(response.text)
        if handle is None:
            logger.warning("No author handle found in post page", extra={"raw_id": raw_id})
            return None
        with self._cache_lock:
            self._cache[raw_id] = handle
        return handle
