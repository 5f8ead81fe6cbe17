"""Progressive web app support: caching rules, service worker, manifest."""

from remind.pwa.assets import OFFLINE_HTML, web_manifest
from remind.pwa.cache_strategy import (
    DYNAMIC_CACHE,
    OFFLINE_PAGE,
    STATIC_CACHE,
    STATIC_FILES,
    CachedResponse,
    CacheStorage,
    Request,
    ServiceWorkerCache,
)
from remind.pwa.service_worker import render_service_worker

__all__ = [
    "DYNAMIC_CACHE",
    "OFFLINE_HTML",
    "OFFLINE_PAGE",
    "STATIC_CACHE",
    "STATIC_FILES",
    "CacheStorage",
    "CachedResponse",
    "Request",
    "ServiceWorkerCache",
    "render_service_worker",
    "web_manifest",
]
