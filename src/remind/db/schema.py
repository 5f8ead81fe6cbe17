"""Runtime schema bootstrap.

Every statement is idempotent (`IF NOT EXISTS`) so the schema can be ensured
on each application start. Statements are executed one at a time because the
SQLite driver refuses multi-statement strings. Column types are limited to
TEXT/INTEGER/REAL so the same DDL works on SQLite and PostgreSQL.
"""

from __future__ import annotations

import structlog
from sqlalchemy import text

logger = structlog.get_logger()


_DDL: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        phone_number TEXT,
        timezone TEXT NOT NULL DEFAULT 'UTC',
        language TEXT NOT NULL DEFAULT 'en',
        subscription_tier TEXT NOT NULL DEFAULT 'free',
        subscription_status TEXT NOT NULL DEFAULT 'active',
        stripe_customer_id TEXT,
        default_reminders_json TEXT NOT NULL,
        notification_channels_json TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_active_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        title TEXT NOT NULL,
        description TEXT,
        category TEXT NOT NULL,
        priority TEXT NOT NULL,
        start_date TEXT NOT NULL,
        end_date TEXT,
        location TEXT,
        is_all_day INTEGER NOT NULL DEFAULT 0,
        recurrence_type TEXT NOT NULL DEFAULT 'None',
        recurrence_end_date TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        prep_tasks_json TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_user_start ON events(user_id, start_date)",
    """
    CREATE TABLE IF NOT EXISTS reminders (
        id TEXT PRIMARY KEY,
        event_id TEXT NOT NULL REFERENCES events(id),
        user_id TEXT NOT NULL REFERENCES users(id),
        remind_at TEXT NOT NULL,
        value INTEGER NOT NULL,
        unit TEXT NOT NULL,
        is_sent INTEGER NOT NULL DEFAULT 0,
        sent_at TEXT,
        delivery_failed INTEGER NOT NULL DEFAULT 0,
        notification_channels_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_reminders_due ON reminders(is_sent, remind_at)",
    "CREATE INDEX IF NOT EXISTS idx_reminders_event ON reminders(event_id)",
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        title TEXT NOT NULL,
        completed INTEGER NOT NULL DEFAULT 0,
        priority TEXT NOT NULL,
        completed_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)",
    """
    CREATE TABLE IF NOT EXISTS push_subscriptions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        endpoint TEXT NOT NULL UNIQUE,
        p256dh TEXT NOT NULL,
        auth TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_push_subscriptions_user ON push_subscriptions(user_id)",
    """
    CREATE TABLE IF NOT EXISTS voice_profiles (
        user_id TEXT PRIMARY KEY REFERENCES users(id),
        profile_json TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


def ensure_core_schema(engine) -> None:
    """Ensure required tables and indexes exist (idempotent).

    Args:
        engine: SQLAlchemy engine.
    """

    with engine.begin() as conn:
        for statement in _DDL:
            conn.execute(text(statement))

    logger.info("core_schema_ensured", statements=len(_DDL))
