"""Repository helpers for tasks (to-dos without a date)."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import text

from remind.db.values import from_db_ts, new_id, now_utc, to_db_ts
from remind.models import Priority, Task, TaskCreate

logger = structlog.get_logger()


_TASK_COLUMNS = "id, user_id, title, completed, priority, completed_at, created_at, updated_at"


def _row_to_task(row: Any) -> Task:
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        completed=bool(row["completed"]),
        priority=Priority(row["priority"]),
        completed_at=from_db_ts(row["completed_at"]),
        created_at=from_db_ts(row["created_at"]),
        updated_at=from_db_ts(row["updated_at"]),
    )


def create_tasks(*, engine: Any, user_id: str, tasks: list[TaskCreate]) -> list[Task]:
    """Insert several tasks in one transaction, preserving their order."""

    if not tasks:
        return []

    now = to_db_ts(now_utc())
    rows = [
        {
            "id": new_id(),
            "user_id": user_id,
            "title": t.title.strip(),
            "priority": t.priority.value,
            "now": now,
        }
        for t in tasks
    ]
    q = text(
        """
        INSERT INTO tasks (id, user_id, title, completed, priority, completed_at, created_at, updated_at)
        VALUES (:id, :user_id, :title, 0, :priority, NULL, :now, :now)
        """
    )
    with engine.begin() as conn:
        conn.execute(q, rows)

    logger.info("tasks_created", count=len(rows))
    created = []
    for row in rows:
        task = get_task(engine=engine, user_id=user_id, task_id=str(row["id"]))
        assert task is not None
        created.append(task)
    return created


def create_task(*, engine: Any, user_id: str, data: TaskCreate) -> Task:
    return create_tasks(engine=engine, user_id=user_id, tasks=[data])[0]


def get_task(*, engine: Any, user_id: str, task_id: str) -> Task | None:
    q = text(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = :id AND user_id = :user_id")
    with engine.begin() as conn:
        row = conn.execute(q, {"id": task_id, "user_id": user_id}).mappings().first()
    return _row_to_task(row) if row is not None else None


def list_tasks(
    *,
    engine: Any,
    user_id: str,
    completed: bool | None = None,
    limit: int = 500,
) -> list[Task]:
    limit = max(1, min(int(limit), 5000))
    where = ["user_id = :user_id"]
    params: dict[str, object] = {"user_id": user_id, "limit": limit}
    if completed is not None:
        where.append("completed = :completed")
        params["completed"] = 1 if completed else 0

    q = text(
        f"""
        SELECT {_TASK_COLUMNS}
        FROM tasks
        WHERE {' AND '.join(where)}
        ORDER BY completed ASC, created_at DESC, id ASC
        LIMIT :limit
        """
    )
    with engine.begin() as conn:
        rows = conn.execute(q, params).mappings().all()
    return [_row_to_task(r) for r in rows]


def update_task(
    *,
    engine: Any,
    user_id: str,
    task_id: str,
    title: str | None = None,
    priority: Priority | None = None,
    completed: bool | None = None,
) -> Task | None:
    sets: list[str] = []
    now = to_db_ts(now_utc())
    params: dict[str, object] = {"id": task_id, "user_id": user_id, "now": now}
    if title is not None:
        sets.append("title = :title")
        params["title"] = title.strip()
    if priority is not None:
        sets.append("priority = :priority")
        params["priority"] = Priority(priority).value
    if completed is not None:
        sets.append("completed = :completed")
        sets.append("completed_at = :completed_at")
        params["completed"] = 1 if completed else 0
        params["completed_at"] = now if completed else None

    if sets:
        sets.append("updated_at = :now")
        q = text(f"UPDATE tasks SET {', '.join(sets)} WHERE id = :id AND user_id = :user_id")
        with engine.begin() as conn:
            conn.execute(q, params)

    return get_task(engine=engine, user_id=user_id, task_id=task_id)


def delete_task(*, engine: Any, user_id: str, task_id: str) -> bool:
    q = text("DELETE FROM tasks WHERE id = :id AND user_id = :user_id")
    with engine.begin() as conn:
        result = conn.execute(q, {"id": task_id, "user_id": user_id})
    return (result.rowcount or 0) > 0
