"""Repository helpers for reminders.

A reminder always belongs to an event; its fire time is the event start minus
the lead time. Deleting a reminder is a hard delete.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import text

from remind.db.values import from_db_json, from_db_ts, new_id, now_utc, to_db_json, to_db_ts
from remind.models import LeadTime, NotificationChannel, Reminder, ReminderUnit

logger = structlog.get_logger()


_REMINDER_COLUMNS = """
    id, event_id, user_id, remind_at, value, unit,
    is_sent, sent_at, delivery_failed, notification_channels_json, created_at
"""


def _row_to_reminder(row: Any) -> Reminder:
    return Reminder(
        id=row["id"],
        event_id=row["event_id"],
        user_id=row["user_id"],
        remind_at=from_db_ts(row["remind_at"]),
        value=int(row["value"]),
        unit=ReminderUnit(row["unit"]),
        is_sent=bool(row["is_sent"]),
        sent_at=from_db_ts(row["sent_at"]),
        delivery_failed=bool(row["delivery_failed"]),
        notification_channels=[
            NotificationChannel(c) for c in from_db_json(row["notification_channels_json"], [])
        ],
        created_at=from_db_ts(row["created_at"]),
    )


def build_reminder_row(
    *,
    event_id: str,
    user_id: str,
    start_date: datetime,
    lead_time: LeadTime,
    channels: list[NotificationChannel],
    created_at: datetime,
) -> dict[str, object]:
    """Build insert parameters for one reminder of an event."""

    return {
        "id": new_id(),
        "event_id": event_id,
        "user_id": user_id,
        "remind_at": to_db_ts(start_date - lead_time.as_timedelta()),
        "value": lead_time.value,
        "unit": lead_time.unit.value,
        "channels": to_db_json([NotificationChannel(c).value for c in channels]),
        "created_at": to_db_ts(created_at),
    }


def insert_reminder_rows(conn: Any, rows: list[dict[str, object]]) -> None:
    """Insert reminder rows on an open connection (part of a larger transaction)."""

    if not rows:
        return
    conn.execute(
        text(
            """
            INSERT INTO reminders (
                id, event_id, user_id, remind_at, value, unit,
                is_sent, sent_at, notification_channels_json, created_at
            )
            VALUES (
                :id, :event_id, :user_id, :remind_at, :value, :unit,
                0, NULL, :channels, :created_at
            )
            """
        ),
        rows,
    )


def create_reminder(
    *,
    engine: Any,
    user_id: str,
    event_id: str,
    start_date: datetime,
    lead_time: LeadTime,
    channels: list[NotificationChannel],
) -> Reminder:
    row = build_reminder_row(
        event_id=event_id,
        user_id=user_id,
        start_date=start_date,
        lead_time=lead_time,
        channels=channels,
        created_at=now_utc(),
    )
    with engine.begin() as conn:
        insert_reminder_rows(conn, [row])

    reminder = get_reminder(engine=engine, user_id=user_id, reminder_id=str(row["id"]))
    assert reminder is not None
    return reminder


def get_reminder(*, engine: Any, user_id: str, reminder_id: str) -> Reminder | None:
    q = text(f"SELECT {_REMINDER_COLUMNS} FROM reminders WHERE id = :id AND user_id = :user_id")
    with engine.begin() as conn:
        row = conn.execute(q, {"id": reminder_id, "user_id": user_id}).mappings().first()
    return _row_to_reminder(row) if row is not None else None


def list_reminders(
    *,
    engine: Any,
    user_id: str,
    event_id: str | None = None,
    include_sent: bool = True,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Reminder], int]:
    """List reminders ordered by fire time.

    Returns:
        The requested page and the total number of matching reminders.
    """

    limit = max(1, min(int(limit), 500))
    offset = max(0, int(offset))

    where = ["user_id = :user_id"]
    params: dict[str, object] = {"user_id": user_id, "limit": limit, "offset": offset}
    if event_id is not None:
        where.append("event_id = :event_id")
        params["event_id"] = event_id
    if not include_sent:
        where.append("is_sent = 0")
    where_sql = " AND ".join(where)

    with engine.begin() as conn:
        total = conn.execute(
            text(f"SELECT COUNT(*) FROM reminders WHERE {where_sql}"), params
        ).scalar_one()
        rows = (
            conn.execute(
                text(
                    f"""
                    SELECT {_REMINDER_COLUMNS}
                    FROM reminders
                    WHERE {where_sql}
                    ORDER BY remind_at ASC, id ASC
                    LIMIT :limit OFFSET :offset
                    """
                ),
                params,
            )
            .mappings()
            .all()
        )

    return [_row_to_reminder(r) for r in rows], int(total or 0)


def list_reminders_for_event(*, engine: Any, event_id: str) -> list[Reminder]:
    q = text(
        f"SELECT {_REMINDER_COLUMNS} FROM reminders WHERE event_id = :event_id ORDER BY remind_at ASC"
    )
    with engine.begin() as conn:
        rows = conn.execute(q, {"event_id": event_id}).mappings().all()
    return [_row_to_reminder(r) for r in rows]


def update_reminder(
    *,
    engine: Any,
    user_id: str,
    reminder_id: str,
    remind_at: datetime | None = None,
    lead_time: LeadTime | None = None,
    channels: list[NotificationChannel] | None = None,
    is_sent: bool | None = None,
) -> Reminder | None:
    """Apply a partial update. A new lead time should come with its new ``remind_at``."""

    sets: list[str] = []
    params: dict[str, object] = {"id": reminder_id, "user_id": user_id}
    if lead_time is not None:
        sets.append("value = :value")
        sets.append("unit = :unit")
        params["value"] = lead_time.value
        params["unit"] = lead_time.unit.value
    if remind_at is not None:
        sets.append("remind_at = :remind_at")
        params["remind_at"] = to_db_ts(remind_at)
    if channels is not None:
        sets.append("notification_channels_json = :channels")
        params["channels"] = to_db_json([NotificationChannel(c).value for c in channels])
    if is_sent is not None:
        sets.append("is_sent = :is_sent")
        sets.append("sent_at = :sent_at")
        sets.append("delivery_failed = 0")
        params["is_sent"] = 1 if is_sent else 0
        params["sent_at"] = to_db_ts(now_utc()) if is_sent else None

    if sets:
        q = text(f"UPDATE reminders SET {', '.join(sets)} WHERE id = :id AND user_id = :user_id")
        with engine.begin() as conn:
            conn.execute(q, params)

    return get_reminder(engine=engine, user_id=user_id, reminder_id=reminder_id)


def delete_reminder(*, engine: Any, user_id: str, reminder_id: str) -> bool:
    q = text("DELETE FROM reminders WHERE id = :id AND user_id = :user_id")
    with engine.begin() as conn:
        result = conn.execute(q, {"id": reminder_id, "user_id": user_id})
    return (result.rowcount or 0) > 0


def mark_sent(
    *,
    engine: Any,
    reminder_id: str,
    sent_at: datetime | None = None,
    delivery_failed: bool = False,
) -> bool:
    """Flag a reminder as attempted. Already-sent reminders are left untouched.

    ``delivery_failed`` records that no channel delivered it; the reminder is
    still taken out of the due set.
    """

    q = text(
        """
        UPDATE reminders
        SET is_sent = 1, sent_at = :sent_at, delivery_failed = :delivery_failed
        WHERE id = :id AND is_sent = 0
        """
    )
    params = {
        "id": reminder_id,
        "sent_at": to_db_ts(sent_at or now_utc()),
        "delivery_failed": 1 if delivery_failed else 0,
    }
    with engine.begin() as conn:
        result = conn.execute(q, params)
    return (result.rowcount or 0) > 0


def list_due_reminders(*, engine: Any, now: datetime, limit: int = 500) -> list[dict[str, Any]]:
    """List unsent reminders whose fire time has passed, with event and owner details.

    Returns:
        Rows with reminder_id, remind_at, channels, event fields and the owner's
        contact fields.
    """

    limit = max(1, min(int(limit), 5000))
    q = text(
        """
        SELECT
            r.id AS reminder_id,
            r.remind_at AS remind_at,
            r.notification_channels_json AS channels_json,
            e.id AS event_id,
            e.title AS title,
            e.description AS description,
            e.start_date AS start_date,
            e.location AS location,
            e.priority AS priority,
            e.category AS category,
            u.id AS user_id,
            u.name AS user_name,
            u.email AS email,
            u.phone_number AS phone_number,
            u.timezone AS timezone
        FROM reminders r
        JOIN events e ON e.id = r.event_id
        JOIN users u ON u.id = r.user_id
        WHERE r.is_sent = 0
          AND r.remind_at <= :now
          AND e.status = 'active'
        ORDER BY r.remind_at ASC, r.id ASC
        LIMIT :limit
        """
    )
    with engine.begin() as conn:
        rows = conn.execute(q, {"now": to_db_ts(now), "limit": limit}).mappings().all()

    out: list[dict[str, Any]] = []
    for r in rows:
        d = dict(r)
        d["channels"] = [NotificationChannel(c) for c in from_db_json(d.pop("channels_json"), [])]
        d["remind_at"] = from_db_ts(d["remind_at"])
        d["start_date"] = from_db_ts(d["start_date"])
        out.append(d)
    return out
