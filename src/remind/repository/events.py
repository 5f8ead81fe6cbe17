"""Repository helpers for events.

Deletion is a hard delete and removes the event's reminders in the same
transaction. The ``status`` column is lifecycle state only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import text

from remind.db.values import from_db_json, from_db_ts, new_id, now_utc, to_db_json, to_db_ts
from remind.models import (
    Event,
    EventCategory,
    EventCreate,
    EventStatus,
    LeadTime,
    NotificationChannel,
    Priority,
    RecurrenceType,
    Reminder,
)
from remind.repository.reminders import (
    build_reminder_row,
    insert_reminder_rows,
    list_reminders_for_event,
)

logger = structlog.get_logger()


_EVENT_COLUMNS = """
    id, user_id, title, description, category, priority,
    start_date, end_date, location, is_all_day,
    recurrence_type, recurrence_end_date, status, prep_tasks_json,
    created_at, updated_at
"""

# Columns a caller may change through update_event, with their serializers.
_UPDATABLE: dict[str, Any] = {
    "title": str,
    "description": lambda v: v,
    "category": lambda v: EventCategory(v).value,
    "priority": lambda v: Priority(v).value,
    "start_date": to_db_ts,
    "end_date": to_db_ts,
    "location": lambda v: v,
    "is_all_day": lambda v: 1 if v else 0,
    "recurrence_type": lambda v: RecurrenceType(v).value,
    "recurrence_end_date": to_db_ts,
    "status": lambda v: EventStatus(v).value,
}


def _row_to_event(row: Any) -> Event:
    return Event(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        category=EventCategory(row["category"]),
        priority=Priority(row["priority"]),
        start_date=from_db_ts(row["start_date"]),
        end_date=from_db_ts(row["end_date"]),
        location=row["location"],
        is_all_day=bool(row["is_all_day"]),
        recurrence_type=RecurrenceType(row["recurrence_type"]),
        recurrence_end_date=from_db_ts(row["recurrence_end_date"]),
        status=EventStatus(row["status"]),
        prep_tasks=from_db_json(row["prep_tasks_json"], []),
        created_at=from_db_ts(row["created_at"]),
        updated_at=from_db_ts(row["updated_at"]),
    )


def create_event(
    *,
    engine: Any,
    user_id: str,
    data: EventCreate,
    lead_times: list[LeadTime] | None = None,
    channels: list[NotificationChannel] | None = None,
    now: datetime | None = None,
) -> tuple[Event, list[Reminder]]:
    """Insert an event together with its reminders.

    One reminder is created per lead time, except those whose fire time is
    already in the past.

    Returns:
        The stored event and the reminders created for it.
    """

    now = now or now_utc()
    event_id = new_id()
    ts = to_db_ts(now)

    reminder_rows = []
    for lead_time in lead_times or []:
        if data.start_date - lead_time.as_timedelta() <= now:
            continue
        reminder_rows.append(
            build_reminder_row(
                event_id=event_id,
                user_id=user_id,
                start_date=data.start_date,
                lead_time=lead_time,
                channels=list(channels or []),
                created_at=now,
            )
        )

    q = text(
        """
        INSERT INTO events (
            id, user_id, title, description, category, priority,
            start_date, end_date, location, is_all_day,
            recurrence_type, recurrence_end_date, status, prep_tasks_json,
            created_at, updated_at
        )
        VALUES (
            :id, :user_id, :title, :description, :category, :priority,
            :start_date, :end_date, :location, :is_all_day,
            :recurrence_type, :recurrence_end_date, 'active', :prep_tasks_json,
            :now, :now
        )
        """
    )

    with engine.begin() as conn:
        conn.execute(
            q,
            {
                "id": event_id,
                "user_id": user_id,
                "title": data.title.strip(),
                "description": data.description,
                "category": data.category.value,
                "priority": data.priority.value,
                "start_date": to_db_ts(data.start_date),
                "end_date": to_db_ts(data.end_date),
                "location": data.location,
                "is_all_day": 1 if data.is_all_day else 0,
                "recurrence_type": data.recurrence_type.value,
                "recurrence_end_date": to_db_ts(data.recurrence_end_date),
                "prep_tasks_json": to_db_json(data.prep_tasks),
                "now": ts,
            },
        )
        insert_reminder_rows(conn, reminder_rows)

    logger.info("event_created", event_id=event_id, reminders=len(reminder_rows))
    event = get_event(engine=engine, user_id=user_id, event_id=event_id)
    assert event is not None
    return event, list_reminders_for_event(engine=engine, event_id=event_id)


def get_event(*, engine: Any, user_id: str, event_id: str) -> Event | None:
    q = text(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = :id AND user_id = :user_id")
    with engine.begin() as conn:
        row = conn.execute(q, {"id": event_id, "user_id": user_id}).mappings().first()
    return _row_to_event(row) if row is not None else None


def list_events(
    *,
    engine: Any,
    user_id: str,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    category: EventCategory | None = None,
    status: EventStatus | None = None,
    search: str | None = None,
    limit: int = 500,
) -> list[Event]:
    """List a user's events ordered by start time.

    Args:
        engine: SQLAlchemy engine.
        user_id: Owner.
        start_date: Only events starting at or after this time.
        end_date: Only events starting at or before this time.
        category: Only events in this category.
        status: Only events in this lifecycle state.
        search: Case-insensitive substring of the title or description.
        limit: Max rows.
    """

    limit = max(1, min(int(limit), 5000))
    where = ["user_id = :user_id"]
    params: dict[str, object] = {"user_id": user_id, "limit": limit}

    if start_date is not None:
        where.append("start_date >= :start_date")
        params["start_date"] = to_db_ts(start_date)
    if end_date is not None:
        where.append("start_date <= :end_date")
        params["end_date"] = to_db_ts(end_date)
    if category is not None:
        where.append("category = :category")
        params["category"] = EventCategory(category).value
    if status is not None:
        where.append("status = :status")
        params["status"] = EventStatus(status).value
    if search:
        where.append("(LOWER(title) LIKE :search OR LOWER(COALESCE(description, '')) LIKE :search)")
        params["search"] = f"%{search.strip().lower()}%"

    q = text(
        f"""
        SELECT {_EVENT_COLUMNS}
        FROM events
        WHERE {' AND '.join(where)}
        ORDER BY start_date ASC, id ASC
        LIMIT :limit
        """
    )
    with engine.begin() as conn:
        rows = conn.execute(q, params).mappings().all()
    return [_row_to_event(r) for r in rows]


def update_event(
    *,
    engine: Any,
    user_id: str,
    event_id: str,
    changes: dict[str, Any],
) -> Event | None:
    """Apply a partial update.

    When ``start_date`` moves, unsent reminders are rescheduled so they keep
    their lead time.

    Returns:
        The updated event, or None if it does not exist for this user.
    """

    current = get_event(engine=engine, user_id=user_id, event_id=event_id)
    if current is None:
        return None

    sets: list[str] = []
    params: dict[str, object] = {"id": event_id, "user_id": user_id, "now": to_db_ts(now_utc())}
    for column, value in changes.items():
        serializer = _UPDATABLE.get(column)
        if serializer is None and column != "prep_tasks":
            continue
        if column == "prep_tasks":
            sets.append("prep_tasks_json = :prep_tasks_json")
            params["prep_tasks_json"] = to_db_json(list(value or []))
            continue
        sets.append(f"{column} = :{column}")
        params[column] = serializer(value) if value is not None else None

    if not sets:
        return current

    sets.append("updated_at = :now")
    new_start = changes.get("start_date")

    with engine.begin() as conn:
        conn.execute(
            text(f"UPDATE events SET {', '.join(sets)} WHERE id = :id AND user_id = :user_id"),
            params,
        )
        if new_start is not None and new_start != current.start_date:
            pending = (
                conn.execute(
                    text("SELECT id, value, unit FROM reminders WHERE event_id = :id AND is_sent = 0"),
                    {"id": event_id},
                )
                .mappings()
                .all()
            )
            for r in pending:
                lead = LeadTime(value=int(r["value"]), unit=r["unit"])
                conn.execute(
                    text("UPDATE reminders SET remind_at = :remind_at WHERE id = :rid"),
                    {"rid": r["id"], "remind_at": to_db_ts(new_start - lead.as_timedelta())},
                )

    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return get_event(engine=engine, user_id=user_id, event_id=event_id)


def delete_event(*, engine: Any, user_id: str, event_id: str) -> bool:
    """Hard-delete an event and its reminders.

    Returns:
        True if the event existed for this user.
    """

    params = {"id": event_id, "user_id": user_id}
    with engine.begin() as conn:
        # Reminders first so the foreign key never points at a missing event.
        conn.execute(
            text("DELETE FROM reminders WHERE event_id = :id AND user_id = :user_id"),
            params,
        )
        result = conn.execute(
            text("DELETE FROM events WHERE id = :id AND user_id = :user_id"),
            params,
        )
        deleted = (result.rowcount or 0) > 0

    if deleted:
        logger.info("event_deleted", event_id=event_id)
    return deleted
