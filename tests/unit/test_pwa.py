"""Unit tests for service-worker caching, the rendered script and PWA assets."""

from __future__ import annotations

import pytest

from remind.pwa import (
    DYNAMIC_CACHE,
    OFFLINE_HTML,
    STATIC_CACHE,
    STATIC_FILES,
    CachedResponse,
    CacheStorage,
    Request,
    ServiceWorkerCache,
    render_service_worker,
    web_manifest,
)

ORIGIN = "https://remind.test"


class FakeNetwork:
    def __init__(self) -> None:
        self.online = True
        self.responses: dict[str, CachedResponse] = {}
        self.requests: list[str] = []

    async def __call__(self, request: Request) -> CachedResponse:
        self.requests.append(request.url)
        if not self.online:
            raise ConnectionError("offline")
        return self.responses.get(request.url, CachedResponse(status=200, body=request.url.encode()))


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def worker(network: FakeNetwork) -> ServiceWorkerCache:
    return ServiceWorkerCache(CacheStorage(), network, origin=ORIGIN)


class TestServiceWorkerCache:
    """Test suite for ServiceWorkerCache."""

    @pytest.mark.asyncio
    async def test_install_precaches_static_files(self, worker: ServiceWorkerCache) -> None:
        """Test that install fills the static cache."""
        cached = await worker.install()

        assert cached == len(STATIC_FILES)
        assert worker.storage.match(f"{ORIGIN}/offline.html") is not None

    @pytest.mark.asyncio
    async def test_install_is_all_or_nothing(self, worker: ServiceWorkerCache, network: FakeNetwork) -> None:
        """Test that one failed static file leaves the cache empty."""
        network.responses[f"{ORIGIN}/manifest.json"] = CachedResponse(status=404)

        with pytest.raises(ConnectionError):
            await worker.install()

        assert worker.storage.open(STATIC_CACHE) == {}

    def test_activate_deletes_stale_caches(self, worker: ServiceWorkerCache) -> None:
        """Test that only the current cache generations survive activation."""
        worker.storage.open(STATIC_CACHE)
        worker.storage.open(DYNAMIC_CACHE)
        worker.storage.open("remind-static-v0")

        deleted = worker.activate()

        assert deleted == ["remind-static-v0"]
        assert sorted(worker.storage.keys()) == sorted([STATIC_CACHE, DYNAMIC_CACHE])

    @pytest.mark.asyncio
    async def test_non_get_passes_through(self, worker: ServiceWorkerCache, network: FakeNetwork) -> None:
        """Test that non-GET requests are not handled."""
        assert await worker.handle_fetch(Request(url="/api/events", method="POST")) is None
        assert network.requests == []

    @pytest.mark.asyncio
    async def test_same_origin_is_cache_first(self, worker: ServiceWorkerCache, network: FakeNetwork) -> None:
        """Test that a cached same-origin response is served without the network."""
        first = await worker.handle_fetch(Request(url="/dashboard/settings"))
        second = await worker.handle_fetch(Request(url="/dashboard/settings"))

        assert first is second
        assert network.requests == [f"{ORIGIN}/dashboard/settings"]
        assert f"{ORIGIN}/dashboard/settings" in worker.storage.open(DYNAMIC_CACHE)

    @pytest.mark.asyncio
    async def test_error_response_is_not_cached(
        self, worker: ServiceWorkerCache, network: FakeNetwork
    ) -> None:
        """Test that only 200 basic responses enter the dynamic cache."""
        network.responses[f"{ORIGIN}/missing"] = CachedResponse(status=404)

        response = await worker.handle_fetch(Request(url="/missing"))

        assert response.status == 404
        assert worker.storage.open(DYNAMIC_CACHE) == {}

    @pytest.mark.asyncio
    async def test_offline_navigation_gets_offline_page(
        self, worker: ServiceWorkerCache, network: FakeNetwork
    ) -> None:
        """Test the offline fallback for page navigations."""
        await worker.install()
        network.online = False

        page = await worker.handle_fetch(Request(url="/reminders", mode="navigate"))
        asset = await worker.handle_fetch(Request(url="/app.js"))

        assert page is worker.storage.match(f"{ORIGIN}/offline.html")
        assert asset is None

    @pytest.mark.asyncio
    async def test_cross_origin_caches_any_ok_response(
        self, worker: ServiceWorkerCache, network: FakeNetwork
    ) -> None:
        """Test that cross-origin 200 responses are cached regardless of type."""
        url = "https://fonts.example.com/inter.woff2"
        network.responses[url] = CachedResponse(status=200, type="cors")

        await worker.handle_fetch(Request(url=url))

        assert url in worker.storage.open(DYNAMIC_CACHE)

    @pytest.mark.asyncio
    async def test_cross_origin_network_error_propagates(
        self, worker: ServiceWorkerCache, network: FakeNetwork
    ) -> None:
        """Test that cross-origin failures are not masked."""
        network.online = False

        with pytest.raises(ConnectionError):
            await worker.handle_fetch(Request(url="https://cdn.example.com/lib.js"))


class TestRenderedAssets:
    """Test suite for the generated service worker and manifest."""

    def test_service_worker_embeds_cache_names(self) -> None:
        """Test that the script uses the same cache names as the Python rules."""
        script = render_service_worker()

        assert f"const STATIC_CACHE = '{STATIC_CACHE}'" in script
        assert f"const DYNAMIC_CACHE = '{DYNAMIC_CACHE}'" in script
        assert '"/offline.html"' in script
        assert "background-sync-reminders" in script
        assert "Snooze 10min" in script
        assert "$" not in script

    def test_manifest(self) -> None:
        """Test the web app manifest essentials."""
        manifest = web_manifest()

        assert manifest["name"] == "RE:MIND"
        assert manifest["start_url"] == "/dashboard"
        assert manifest["display"] == "standalone"
        assert {icon["sizes"] for icon in manifest["icons"]} == {"192x192", "512x512"}

    def test_offline_page(self) -> None:
        """Test that the offline page tells the user what happened."""
        assert "You're offline" in OFFLINE_HTML
