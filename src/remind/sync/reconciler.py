"""Offline-first event sync.

Changes are applied to the local store immediately and recorded in the
pending log. A sync either replays the pending log against the server or,
when there is nothing to replay, pulls the server's event list and keeps
whichever copy of each event has the newer ``updated_at``.

Replay runs in fixed-size batches; the changes inside one batch are sent
concurrently and batches run one after another. A change that fails is
logged and, unless ``requeue_failed`` is set, dropped from the log along with
the successful ones.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from remind.exceptions import SyncError
from remind.models import ChangeType
from remind.sync.store import OfflineStore, PendingChange

logger = structlog.get_logger()


DEFAULT_BATCH_SIZE = 10


@dataclass
class SyncStatus:
    is_online: bool = True
    is_syncing: bool = False
    last_sync: datetime | None = None
    pending_changes: int = 0
    error: str | None = None


@dataclass
class SyncResult:
    batches: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    fetched: int = 0
    skipped: bool = False


def _parse_ts(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _server_is_newer(server_event: dict[str, Any], local_event: dict[str, Any] | None) -> bool:
    if local_event is None:
        return True
    server_ts = _parse_ts(server_event.get("updated_at"))
    local_ts = _parse_ts(local_event.get("updated_at"))
    if server_ts is None:
        return False
    if local_ts is None:
        return True
    return server_ts > local_ts


class SyncReconciler:
    """Keeps an :class:`OfflineStore` in step with the events API.

    ``client`` is an ``httpx.AsyncClient`` whose base URL points at the API and
    which already carries the bearer token.
    """

    def __init__(
        self,
        store: OfflineStore,
        client: httpx.AsyncClient,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        requeue_failed: bool = False,
        online: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self._client = client
        self._batch_size = batch_size
        self._requeue_failed = requeue_failed
        self._status = SyncStatus(is_online=online, pending_changes=store.count_pending())

    @property
    def status(self) -> SyncStatus:
        return replace(self._status)

    async def set_online(self, online: bool) -> SyncResult | None:
        """Record connectivity; coming back online triggers a sync."""

        was_online = self._status.is_online
        self._status.is_online = online
        logger.info("sync_connectivity_changed", online=online)
        if online and not was_online:
            self._status.error = None
            return await self.sync()
        return None

    async def record_change(self, change_type: ChangeType | str, data: dict[str, Any]) -> PendingChange:
        """Apply a change locally, queue it, and sync right away when online."""

        change_type = ChangeType(change_type)
        data = dict(data)
        if change_type == ChangeType.CREATE:
            data.setdefault("id", uuid.uuid4().hex)
        elif not data.get("id"):
            raise ValueError(f"{change_type.value} change requires an event id")

        now = datetime.now(timezone.utc)
        if change_type == ChangeType.DELETE:
            self._store.delete_event(str(data["id"]))
        else:
            local = self._store.get_event(str(data["id"])) or {}
            local.update(data)
            local["updated_at"] = now.isoformat()
            self._store.upsert_event(local)

        change = PendingChange(type=change_type, data=data, timestamp=now)
        self._store.add_pending(change)
        self._status.pending_changes = self._store.count_pending()
        logger.info("sync_change_recorded", change_id=change.id, type=change_type.value)

        if self._status.is_online:
            await self.sync()
        return change

    async def sync(self) -> SyncResult:
        """Replay pending changes, or fetch server state when there are none."""

        if not self._status.is_online or self._status.is_syncing:
            return SyncResult(skipped=True)

        self._status.is_syncing = True
        self._status.error = None
        result = SyncResult()
        try:
            pending = self._store.list_pending()
            if pending:
                result = await self._replay(pending)
            else:
                result.fetched = await self.fetch_latest()
            self._status.last_sync = datetime.now(timezone.utc)
        except (httpx.HTTPError, SyncError) as e:
            self._status.error = str(e) or e.__class__.__name__
            logger.warning("sync_failed", error=self._status.error)
        finally:
            self._status.is_syncing = False
            self._status.pending_changes = self._store.count_pending()

        logger.info(
            "sync_completed",
            batches=result.batches,
            succeeded=result.succeeded,
            failed=result.failed,
            fetched=result.fetched,
            pending=self._status.pending_changes,
        )
        return result

    async def force_sync(self) -> SyncResult:
        """Replay anything pending, then always pull server state."""

        result = await self.sync()
        if result.skipped or self._status.error:
            return result
        if result.attempted > 0:
            try:
                result.fetched = await self.fetch_latest()
            except (httpx.HTTPError, SyncError) as e:
                self._status.error = str(e) or e.__class__.__name__
                logger.warning("sync_fetch_failed", error=self._status.error)
        return result

    async def fetch_latest(self) -> int:
        """Merge the server's events into the local store.

        Returns:
            Number of local events written.
        """

        response = await self._client.get("/api/events")
        response.raise_for_status()
        body = response.json()
        server_events = body.get("events") if isinstance(body, dict) else body
        if not isinstance(server_events, list):
            raise SyncError("Unexpected events payload from server")

        written = 0
        for server_event in server_events:
            event_id = str(server_event.get("id") or "")
            if not event_id:
                continue
            if _server_is_newer(server_event, self._store.get_event(event_id)):
                self._store.upsert_event(server_event)
                written += 1

        logger.info("sync_fetched", server_events=len(server_events), written=written)
        return written

    async def _replay(self, pending: list[PendingChange]) -> SyncResult:
        result = SyncResult()
        done: list[str] = []

        for start in range(0, len(pending), self._batch_size):
            batch = pending[start : start + self._batch_size]
            result.batches += 1
            outcomes = await asyncio.gather(*(self._send(change) for change in batch))
            for change, ok in zip(batch, outcomes):
                result.attempted += 1
                if ok:
                    result.succeeded += 1
                    done.append(change.id)
                else:
                    result.failed += 1
                    if not self._requeue_failed:
                        done.append(change.id)

        self._store.remove_pending(done)
        return result

    async def _send(self, change: PendingChange) -> bool:
        event_id = change.data.get("id")
        try:
            if change.type == ChangeType.CREATE:
                response = await self._client.post("/api/events", json=change.data)
            elif change.type == ChangeType.UPDATE:
                response = await self._client.put(f"/api/events/{event_id}", json=change.data)
            else:
                response = await self._client.delete(f"/api/events/{event_id}")
            response.raise_for_status()
            if change.type == ChangeType.CREATE:
                self._adopt_server_copy(str(event_id), response)
        except httpx.HTTPError as e:
            logger.warning(
                "sync_change_failed",
                change_id=change.id,
                type=change.type.value,
                event_id=event_id,
                error=str(e) or e.__class__.__name__,
            )
            return False
        return True

    def _adopt_server_copy(self, local_id: str, response: httpx.Response) -> None:
        """Replace a locally created event with the server's copy (and server id)."""

        try:
            created = response.json()
        except ValueError:
            return
        if not isinstance(created, dict) or not created.get("id"):
            return
        if str(created["id"]) != local_id:
            self._store.delete_event(local_id)
        self._store.upsert_event(created)
