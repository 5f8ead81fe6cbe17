"""Repository helpers for user accounts."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from remind.db.values import from_db_json, from_db_ts, new_id, now_utc, to_db_json, to_db_ts
from remind.exceptions import ConflictError
from remind.models import (
    DEFAULT_LEAD_TIMES,
    LeadTime,
    NotificationChannel,
    SubscriptionStatus,
    SubscriptionTier,
    User,
)

logger = structlog.get_logger()


_USER_COLUMNS = """
    id, name, email, phone_number, timezone, language,
    subscription_tier, subscription_status, stripe_customer_id,
    default_reminders_json, notification_channels_json,
    created_at, updated_at, last_active_at
"""


def _row_to_user(row: Any) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone_number=row["phone_number"],
        timezone=row["timezone"],
        language=row["language"],
        subscription_tier=SubscriptionTier(row["subscription_tier"]),
        subscription_status=SubscriptionStatus(row["subscription_status"]),
        stripe_customer_id=row["stripe_customer_id"],
        default_reminders=[LeadTime(**lt) for lt in from_db_json(row["default_reminders_json"], [])],
        notification_channels=[
            NotificationChannel(c) for c in from_db_json(row["notification_channels_json"], [])
        ],
        created_at=from_db_ts(row["created_at"]),
        updated_at=from_db_ts(row["updated_at"]),
        last_active_at=from_db_ts(row["last_active_at"]),
    )


def _lead_times_json(lead_times: list[LeadTime]) -> str:
    return to_db_json([lt.model_dump(mode="json") for lt in lead_times])


def _channels_json(channels: list[NotificationChannel]) -> str:
    return to_db_json([NotificationChannel(c).value for c in channels])


def create_user(
    *,
    engine: Any,
    name: str,
    email: str,
    password_hash: str,
    phone_number: str | None = None,
    timezone: str = "UTC",
    language: str = "en",
    default_reminders: list[LeadTime] | None = None,
    notification_channels: list[NotificationChannel] | None = None,
) -> User:
    """Insert a new account.

    Raises:
        ConflictError: If an account with the same email already exists.
    """

    email = email.strip().lower()
    if get_user_by_email(engine=engine, email=email) is not None:
        raise ConflictError("User already exists with this email")

    now = to_db_ts(now_utc())
    user_id = new_id()
    params = {
        "id": user_id,
        "name": name.strip(),
        "email": email,
        "password_hash": password_hash,
        "phone_number": phone_number,
        "timezone": timezone,
        "language": language,
        "default_reminders_json": _lead_times_json(
            default_reminders if default_reminders is not None else list(DEFAULT_LEAD_TIMES)
        ),
        "notification_channels_json": _channels_json(
            notification_channels
            if notification_channels is not None
            else [NotificationChannel.PUSH, NotificationChannel.EMAIL]
        ),
        "now": now,
    }

    q = text(
        """
        INSERT INTO users (
            id, name, email, password_hash, phone_number, timezone, language,
            subscription_tier, subscription_status,
            default_reminders_json, notification_channels_json,
            created_at, updated_at, last_active_at
        )
        VALUES (
            :id, :name, :email, :password_hash, :phone_number, :timezone, :language,
            'free', 'active',
            :default_reminders_json, :notification_channels_json,
            :now, :now, :now
        )
        """
    )

    try:
        with engine.begin() as conn:
            conn.execute(q, params)
    except IntegrityError as e:
        raise ConflictError("User already exists with this email") from e

    logger.info("user_created", user_id=user_id)
    user = get_user(engine=engine, user_id=user_id)
    assert user is not None
    return user


def get_user(*, engine: Any, user_id: str) -> User | None:
    q = text(f"SELECT {_USER_COLUMNS} FROM users WHERE id = :id")
    with engine.begin() as conn:
        row = conn.execute(q, {"id": user_id}).mappings().first()
    return _row_to_user(row) if row is not None else None


def get_user_by_email(*, engine: Any, email: str) -> User | None:
    q = text(f"SELECT {_USER_COLUMNS} FROM users WHERE email = :email")
    with engine.begin() as conn:
        row = conn.execute(q, {"email": email.strip().lower()}).mappings().first()
    return _row_to_user(row) if row is not None else None


def get_user_by_stripe_customer(*, engine: Any, customer_id: str) -> User | None:
    q = text(f"SELECT {_USER_COLUMNS} FROM users WHERE stripe_customer_id = :cid")
    with engine.begin() as conn:
        row = conn.execute(q, {"cid": customer_id}).mappings().first()
    return _row_to_user(row) if row is not None else None


def get_credentials(*, engine: Any, email: str) -> tuple[User, str] | None:
    """Return the account and its password hash, for login only."""

    q = text(f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE email = :email")
    with engine.begin() as conn:
        row = conn.execute(q, {"email": email.strip().lower()}).mappings().first()
    if row is None:
        return None
    return _row_to_user(row), row["password_hash"]


def touch_last_active(*, engine: Any, user_id: str) -> None:
    q = text("UPDATE users SET last_active_at = :now WHERE id = :id")
    with engine.begin() as conn:
        conn.execute(q, {"id": user_id, "now": to_db_ts(now_utc())})


def update_preferences(
    *,
    engine: Any,
    user_id: str,
    name: str | None = None,
    phone_number: str | None = None,
    timezone: str | None = None,
    language: str | None = None,
    default_reminders: list[LeadTime] | None = None,
    notification_channels: list[NotificationChannel] | None = None,
) -> User | None:
    """Update profile and notification preferences; None leaves a field unchanged."""

    sets: list[str] = []
    params: dict[str, object] = {"id": user_id, "now": to_db_ts(now_utc())}

    if name is not None:
        sets.append("name = :name")
        params["name"] = name.strip()
    if phone_number is not None:
        sets.append("phone_number = :phone_number")
        params["phone_number"] = phone_number or None
    if timezone is not None:
        sets.append("timezone = :timezone")
        params["timezone"] = timezone
    if language is not None:
        sets.append("language = :language")
        params["language"] = language
    if default_reminders is not None:
        sets.append("default_reminders_json = :default_reminders_json")
        params["default_reminders_json"] = _lead_times_json(default_reminders)
    if notification_channels is not None:
        sets.append("notification_channels_json = :notification_channels_json")
        params["notification_channels_json"] = _channels_json(notification_channels)

    if sets:
        sets.append("updated_at = :now")
        q = text(f"UPDATE users SET {', '.join(sets)} WHERE id = :id")
        with engine.begin() as conn:
            conn.execute(q, params)

    return get_user(engine=engine, user_id=user_id)


def update_subscription(
    *,
    engine: Any,
    user_id: str,
    tier: SubscriptionTier | None = None,
    status: SubscriptionStatus | None = None,
    stripe_customer_id: str | None = None,
) -> bool:
    """Update billing state for an account.

    Returns:
        True when the account exists.
    """

    sets = ["updated_at = :now"]
    params: dict[str, object] = {"id": user_id, "now": to_db_ts(now_utc())}
    if tier is not None:
        sets.append("subscription_tier = :tier")
        params["tier"] = SubscriptionTier(tier).value
    if status is not None:
        sets.append("subscription_status = :status")
        params["status"] = SubscriptionStatus(status).value
    if stripe_customer_id is not None:
        sets.append("stripe_customer_id = :cid")
        params["cid"] = stripe_customer_id

    q = text(f"UPDATE users SET {', '.join(sets)} WHERE id = :id")
    with engine.begin() as conn:
        result = conn.execute(q, params)

    updated = (result.rowcount or 0) > 0
    logger.info(
        "user_subscription_updated",
        user_id=user_id,
        tier=params.get("tier"),
        status=params.get("status"),
        found=updated,
    )
    return updated
