"""Unit tests for the offline sync reconciler."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from remind.models import ChangeType
from remind.sync import OfflineStore, SyncReconciler


class FakeEventsApi:
    """In-memory stand-in for the events endpoints, served through httpx.MockTransport."""

    def __init__(self, events: list[dict[str, Any]] | None = None, fail_titles: tuple[str, ...] = ()) -> None:
        self.events = list(events or [])
        self.fail_titles = set(fail_titles)
        self.requests: list[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.list_payload: Any = None
        self.list_error: Exception | None = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return self._respond(request)
        finally:
            self.in_flight -= 1

    def _respond(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            if self.list_error is not None:
                raise self.list_error
            if self.list_payload is not None:
                return httpx.Response(200, json=self.list_payload)
            return httpx.Response(200, json={"events": self.events, "total": len(self.events)})

        if request.method == "DELETE":
            return httpx.Response(200, json={"success": True})

        body = json.loads(request.content)
        if body.get("title") in self.fail_titles:
            return httpx.Response(500, json={"error": "Internal server error"})
        if request.method == "POST":
            created = {**body, "id": f"srv-{body['id']}", "updated_at": "2025-01-01T00:00:00+00:00"}
            self.events.append(created)
            return httpx.Response(201, json=created)
        return httpx.Response(200, json=body)

    def count(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method)


@pytest.fixture
def store(tmp_path) -> OfflineStore:
    store = OfflineStore(tmp_path / "offline.sqlite3")
    store.initialize()
    return store


def _client(api: FakeEventsApi) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(api), base_url="http://api.test")


class TestRecordChange:
    """Test suite for recording local changes."""

    @pytest.mark.asyncio
    async def test_offline_change_is_applied_locally_and_queued(self, store) -> None:
        """Test that an offline create touches only the local store."""
        api = FakeEventsApi()
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client, online=False)

            change = await reconciler.record_change(ChangeType.CREATE, {"title": "Dentist"})

        assert change.data["id"]
        local = store.get_event(change.data["id"])
        assert local["title"] == "Dentist"
        assert local["updated_at"]
        assert reconciler.status.pending_changes == 1
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_update_merges_into_local_copy(self, store) -> None:
        """Test that an update keeps fields it does not mention."""
        store.upsert_event({"id": "e1", "title": "Old", "location": "Room 4"})
        async with _client(FakeEventsApi()) as client:
            reconciler = SyncReconciler(store, client, online=False)

            await reconciler.record_change("update", {"id": "e1", "title": "New"})

        local = store.get_event("e1")
        assert local["title"] == "New"
        assert local["location"] == "Room 4"

    @pytest.mark.asyncio
    async def test_delete_removes_local_copy(self, store) -> None:
        """Test that a delete drops the local event and queues the change."""
        store.upsert_event({"id": "e1", "title": "Old"})
        async with _client(FakeEventsApi()) as client:
            reconciler = SyncReconciler(store, client, online=False)

            await reconciler.record_change(ChangeType.DELETE, {"id": "e1"})

        assert store.get_event("e1") is None
        assert store.count_pending() == 1

    @pytest.mark.asyncio
    async def test_update_without_id_is_rejected(self, store) -> None:
        """Test that updates and deletes must name an event."""
        async with _client(FakeEventsApi()) as client:
            reconciler = SyncReconciler(store, client, online=False)

            with pytest.raises(ValueError):
                await reconciler.record_change(ChangeType.UPDATE, {"title": "No id"})

    @pytest.mark.asyncio
    async def test_online_change_syncs_immediately(self, store) -> None:
        """Test that a change made while online is replayed straight away."""
        api = FakeEventsApi()
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            change = await reconciler.record_change(ChangeType.CREATE, {"title": "Gym"})

        assert api.count("POST") == 1
        assert store.count_pending() == 0
        assert store.get_event(change.data["id"]) is None
        assert store.get_event(f"srv-{change.data['id']}")["title"] == "Gym"


class TestSync:
    """Test suite for replay and fetch."""

    @pytest.mark.asyncio
    async def test_reconnect_replays_in_batches(self, store) -> None:
        """Test that 25 pending changes go out as three batches of at most ten."""
        api = FakeEventsApi()
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client, batch_size=10, online=False)
            for i in range(25):
                await reconciler.record_change(ChangeType.CREATE, {"title": f"Event {i}"})

            result = await reconciler.set_online(True)

        assert result is not None
        assert (result.batches, result.attempted, result.succeeded, result.failed) == (3, 25, 25, 0)
        assert 1 < api.max_in_flight <= 10
        assert api.count("POST") == 25
        assert store.count_pending() == 0
        assert reconciler.status.pending_changes == 0
        assert reconciler.status.last_sync is not None

    @pytest.mark.asyncio
    async def test_failed_change_does_not_block_others(self, store) -> None:
        """Test that one failing change is dropped while the rest succeed."""
        api = FakeEventsApi(fail_titles=("Event 3",))
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client, batch_size=2, online=False)
            for i in range(5):
                await reconciler.record_change(ChangeType.CREATE, {"title": f"Event {i}"})

            result = await reconciler.set_online(True)

        assert (result.succeeded, result.failed) == (4, 1)
        assert store.count_pending() == 0
        assert reconciler.status.error is None

    @pytest.mark.asyncio
    async def test_failed_change_is_requeued_when_enabled(self, store) -> None:
        """Test that requeue_failed keeps failed changes for the next sync."""
        api = FakeEventsApi(fail_titles=("Event 3",))
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client, batch_size=2, requeue_failed=True, online=False)
            for i in range(5):
                await reconciler.record_change(ChangeType.CREATE, {"title": f"Event {i}"})

            await reconciler.set_online(True)

        pending = store.list_pending()
        assert [c.data["title"] for c in pending] == ["Event 3"]
        assert reconciler.status.pending_changes == 1

    @pytest.mark.asyncio
    async def test_sync_while_offline_is_skipped(self, store) -> None:
        """Test that no request is made while offline."""
        api = FakeEventsApi()
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client, online=False)

            result = await reconciler.sync()

        assert result.skipped is True
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_going_offline_does_not_sync(self, store) -> None:
        """Test that only the offline-to-online transition triggers a sync."""
        api = FakeEventsApi()
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            assert await reconciler.set_online(False) is None
            assert await reconciler.set_online(False) is None

        assert reconciler.status.is_online is False
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_fetch_keeps_newer_copy(self, store) -> None:
        """Test last-write-wins merging of the server's event list."""
        store.upsert_event({"id": "e1", "title": "Local e1", "updated_at": "2025-01-10T00:00:00+00:00"})
        store.upsert_event({"id": "e2", "title": "Local e2", "updated_at": "2025-01-01T00:00:00+00:00"})
        api = FakeEventsApi(
            events=[
                {"id": "e1", "title": "Server e1", "updated_at": "2025-01-05T00:00:00Z"},
                {"id": "e2", "title": "Server e2", "updated_at": "2025-01-08T00:00:00Z"},
                {"id": "e3", "title": "Server e3", "updated_at": "2025-01-08T00:00:00Z"},
            ]
        )
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            result = await reconciler.sync()

        assert result.fetched == 2
        assert store.get_event("e1")["title"] == "Local e1"
        assert store.get_event("e2")["title"] == "Server e2"
        assert store.get_event("e3")["title"] == "Server e3"

    @pytest.mark.asyncio
    async def test_fetch_accepts_plain_list(self, store) -> None:
        """Test that a bare JSON array of events is accepted."""
        api = FakeEventsApi()
        api.list_payload = [{"id": "e1", "title": "Gym"}]
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            assert await reconciler.fetch_latest() == 1

    @pytest.mark.asyncio
    async def test_unexpected_payload_sets_error(self, store) -> None:
        """Test that a malformed list response is reported on the status."""
        api = FakeEventsApi()
        api.list_payload = {"unexpected": True}
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            await reconciler.sync()

        assert reconciler.status.error == "Unexpected events payload from server"
        assert reconciler.status.is_syncing is False

    @pytest.mark.asyncio
    async def test_network_error_sets_error(self, store) -> None:
        """Test that a transport failure does not raise out of sync()."""
        api = FakeEventsApi()
        api.list_error = httpx.ConnectError("connection refused")
        async with _client(api) as client:
            reconciler = SyncReconciler(store, client)

            result = await reconciler.sync()

        assert result.fetched == 0
        assert reconciler.status.error == "connection refused"

    @pytest.mark.asyncio
    async def test_force_sync_replays_then_fetches(self, store) -> None:
        """Test that force_sync pulls server state after replaying."""
        api = FakeEventsApi(events=[{"id": "e9", "title": "Elsewhere", "updated_at": "2025-01-02T00:00:00Z"}])
        async with _client(api) as client:
            offline = SyncReconciler(store, client, online=False)
            await offline.record_change(ChangeType.CREATE, {"title": "Gym"})
            reconciler = SyncReconciler(store, client)

            result = await reconciler.force_sync()

        assert result.attempted == 1
        assert result.fetched == 1
        assert store.get_event("e9")["title"] == "Elsewhere"
        assert api.count("GET") == 1

    @pytest.mark.asyncio
    async def test_batch_size_must_be_positive(self, store) -> None:
        """Test that a zero batch size is rejected."""
        async with _client(FakeEventsApi()) as client:
            with pytest.raises(ValueError):
                SyncReconciler(store, client, batch_size=0)
