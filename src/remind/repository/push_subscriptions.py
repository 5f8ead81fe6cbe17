"""Repository helpers for browser push subscriptions."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import text

from remind.db.values import from_db_ts, new_id, now_utc, to_db_ts
from remind.models import PushSubscription

logger = structlog.get_logger()


def _row_to_subscription(row: Any) -> PushSubscription:
    return PushSubscription(
        id=row["id"],
        user_id=row["user_id"],
        endpoint=row["endpoint"],
        p256dh=row["p256dh"],
        auth=row["auth"],
        created_at=from_db_ts(row["created_at"]),
    )


def upsert_subscription(
    *,
    engine: Any,
    user_id: str,
    endpoint: str,
    p256dh: str,
    auth: str,
) -> PushSubscription:
    """Store a subscription; an endpoint seen again is re-assigned to this user."""

    q = text(
        """
        INSERT INTO push_subscriptions (id, user_id, endpoint, p256dh, auth, created_at)
        VALUES (:id, :user_id, :endpoint, :p256dh, :auth, :now)
        ON CONFLICT(endpoint) DO UPDATE SET
            user_id = excluded.user_id,
            p256dh = excluded.p256dh,
            auth = excluded.auth
        """
    )
    with engine.begin() as conn:
        conn.execute(
            q,
            {
                "id": new_id(),
                "user_id": user_id,
                "endpoint": endpoint,
                "p256dh": p256dh,
                "auth": auth,
                "now": to_db_ts(now_utc()),
            },
        )
        row = (
            conn.execute(
                text("SELECT * FROM push_subscriptions WHERE endpoint = :endpoint"),
                {"endpoint": endpoint},
            )
            .mappings()
            .one()
        )

    logger.info("push_subscription_saved", user_id=user_id)
    return _row_to_subscription(row)


def list_subscriptions(*, engine: Any, user_id: str) -> list[PushSubscription]:
    q = text("SELECT * FROM push_subscriptions WHERE user_id = :user_id ORDER BY created_at ASC")
    with engine.begin() as conn:
        rows = conn.execute(q, {"user_id": user_id}).mappings().all()
    return [_row_to_subscription(r) for r in rows]


def delete_subscription(*, engine: Any, endpoint: str, user_id: str | None = None) -> bool:
    """Remove a subscription by endpoint, optionally scoped to its owner."""

    where = "endpoint = :endpoint"
    params: dict[str, object] = {"endpoint": endpoint}
    if user_id is not None:
        where += " AND user_id = :user_id"
        params["user_id"] = user_id
    with engine.begin() as conn:
        result = conn.execute(text(f"DELETE FROM push_subscriptions WHERE {where}"), params)
    return (result.rowcount or 0) > 0
