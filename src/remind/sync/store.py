"""SQLite-backed offline store for the sync client.

Holds the client's local copy of the event list and the log of changes made
while offline (or not yet replayed). Events are kept as the JSON documents the
server returns, keyed by id.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from remind.models import ChangeType

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


@dataclass
class PendingChange:
    """A local change waiting to be replayed against the server."""

    type: ChangeType
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class OfflineStore:
    """Local event copy plus the pending-change log."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def initialize(self) -> None:
        """Create or upgrade the store schema."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("offline_store_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise RuntimeError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    # Pending changes

    def add_pending(self, change: PendingChange) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO pending_changes (change_id, type, data_json, timestamp_iso)
                VALUES (?, ?, ?, ?)
                """,
                (
                    change.id,
                    ChangeType(change.type).value,
                    json.dumps(change.data, default=str),
                    change.timestamp.isoformat(),
                ),
            )
            conn.commit()

    def list_pending(self) -> list[PendingChange]:
        """Pending changes in the order they were recorded."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT change_id, type, data_json, timestamp_iso FROM pending_changes ORDER BY seq ASC"
            ).fetchall()
        return [
            PendingChange(
                id=row["change_id"],
                type=ChangeType(row["type"]),
                data=json.loads(row["data_json"]),
                timestamp=datetime.fromisoformat(row["timestamp_iso"]),
            )
            for row in rows
        ]

    def count_pending(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM pending_changes").fetchone()
        return int(row[0])

    def clear_pending(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM pending_changes")
            conn.commit()
        return int(cur.rowcount or 0)

    def remove_pending(self, change_ids: list[str]) -> int:
        """Delete the given changes, leaving anything recorded since untouched."""

        if not change_ids:
            return 0
        with self._connect() as conn:
            cur = conn.executemany(
                "DELETE FROM pending_changes WHERE change_id = ?", [(cid,) for cid in change_ids]
            )
            conn.commit()
        return int(cur.rowcount or 0)

    # Local events

    def upsert_event(self, event: dict[str, Any]) -> None:
        event_id = str(event["id"])
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO local_events (event_id, data_json, updated_at_iso)
                VALUES (?, ?, ?)
                ON CONFLICT(event_id) DO UPDATE SET
                    data_json=excluded.data_json,
                    updated_at_iso=excluded.updated_at_iso
                """,
                (event_id, json.dumps(event, default=str), event.get("updated_at")),
            )
            conn.commit()

    def get_event(self, event_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data_json FROM local_events WHERE event_id = ?", (event_id,)
            ).fetchone()
        return json.loads(row["data_json"]) if row is not None else None

    def list_events(self) -> list[dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute("SELECT data_json FROM local_events ORDER BY event_id").fetchall()
        return [json.loads(r["data_json"]) for r in rows]

    def delete_event(self, event_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM local_events WHERE event_id = ?", (event_id,))
            conn.commit()
        return (cur.rowcount or 0) > 0

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute("SELECT value FROM _schema_meta WHERE key = 'schema_version'").fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?)",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS local_events (
                event_id TEXT PRIMARY KEY,
                data_json TEXT NOT NULL,
                updated_at_iso TEXT
            );

            CREATE TABLE IF NOT EXISTS pending_changes (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                change_id TEXT NOT NULL,
                type TEXT NOT NULL,
                data_json TEXT NOT NULL,
                timestamp_iso TEXT NOT NULL
            );
            """
        )
