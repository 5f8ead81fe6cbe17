"""Service-worker caching rules, modelled in Python.

The same rules are rendered into ``/sw.js`` (see :mod:`remind.pwa.service_worker`);
this module keeps them executable so the behaviour can be tested without a
browser.

* install: pre-cache the static shell into the static cache (all or nothing).
* activate: drop every cache that is not one of the current generations.
* fetch: non-GET passes through untouched. Same-origin requests are
  cache-first with a network fallback; successful ``basic`` responses are
  added to the dynamic cache and a failed navigation falls back to the offline
  page. Cross-origin requests are cache-first and cache any 200 response.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlsplit

import structlog

logger = structlog.get_logger()


STATIC_CACHE = "remind-static-v1"
DYNAMIC_CACHE = "remind-dynamic-v1"
OFFLINE_PAGE = "/offline.html"

STATIC_FILES: tuple[str, ...] = (
    "/",
    "/dashboard",
    "/manifest.json",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
    OFFLINE_PAGE,
)


@dataclass
class Request:
    url: str
    method: str = "GET"
    mode: str = "cors"

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"


@dataclass
class CachedResponse:
    status: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    type: str = "basic"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


Fetcher = Callable[[Request], Awaitable[CachedResponse]]


class CacheStorage:
    """Named caches mapping absolute URLs to responses."""

    def __init__(self) -> None:
        self._caches: dict[str, dict[str, CachedResponse]] = {}

    def open(self, name: str) -> dict[str, CachedResponse]:
        return self._caches.setdefault(name, {})

    def keys(self) -> list[str]:
        return list(self._caches)

    def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None

    def match(self, url: str) -> CachedResponse | None:
        for cache in self._caches.values():
            if url in cache:
                return cache[url]
        return None


class ServiceWorkerCache:
    """Install, activate and fetch handling for the app shell.

    ``fetch`` performs the network request and raises ``ConnectionError`` when
    the network is unavailable.
    """

    def __init__(self, storage: CacheStorage, fetch: Fetcher, *, origin: str) -> None:
        self.storage = storage
        self._fetch = fetch
        self._origin = origin.rstrip("/")

    def _absolute(self, url: str) -> str:
        return urljoin(self._origin + "/", url)

    def _is_same_origin(self, url: str) -> bool:
        target = urlsplit(url)
        origin = urlsplit(self._origin)
        return (target.scheme, target.netloc) == (origin.scheme, origin.netloc)

    async def install(self) -> int:
        """Pre-cache the static files.

        Raises:
            ConnectionError: If any static file cannot be fetched; nothing is cached then.
        """

        fetched: dict[str, CachedResponse] = {}
        for path in STATIC_FILES:
            url = self._absolute(path)
            response = await self._fetch(Request(url=url))
            if not response.ok:
                raise ConnectionError(f"Failed to pre-cache {path} ({response.status})")
            fetched[url] = response

        self.storage.open(STATIC_CACHE).update(fetched)
        logger.info("sw_installed", cached=len(fetched))
        return len(fetched)

    def activate(self) -> list[str]:
        """Delete stale cache generations and return their names."""

        current = {STATIC_CACHE, DYNAMIC_CACHE}
        stale = [name for name in self.storage.keys() if name not in current]
        for name in stale:
            self.storage.delete(name)
            logger.info("sw_cache_deleted", cache=name)
        return stale

    async def handle_fetch(self, request: Request) -> CachedResponse | None:
        """Answer a request the way the service worker would.

        Returns:
            The response to serve, or None when the request passes through to the
            network untouched (non-GET) or a failed navigation has no offline page.
        """

        if request.method.upper() != "GET":
            return None

        url = self._absolute(request.url)
        cached = self.storage.match(url)
        if cached is not None:
            return cached

        if self._is_same_origin(url):
            try:
                response = await self._fetch(Request(url=url, method="GET", mode=request.mode))
            except ConnectionError:
                if request.is_navigation:
                    return self.storage.match(self._absolute(OFFLINE_PAGE))
                return None
            if response.status == 200 and response.type == "basic":
                self.storage.open(DYNAMIC_CACHE)[url] = response
            return response

        response = await self._fetch(Request(url=url, method="GET", mode=request.mode))
        if response.status == 200:
            self.storage.open(DYNAMIC_CACHE)[url] = response
        return response
