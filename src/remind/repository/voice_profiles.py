"""Repository helpers for per-user voice profiles."""

from __future__ import annotations

from typing import Any

from sqlalchemy import text

from remind.db.values import now_utc, to_db_ts
from remind.models import VoiceProfile


def get_profile(*, engine: Any, user_id: str) -> VoiceProfile | None:
    q = text("SELECT profile_json FROM voice_profiles WHERE user_id = :user_id")
    with engine.begin() as conn:
        raw = conn.execute(q, {"user_id": user_id}).scalar_one_or_none()
    if raw is None:
        return None
    return VoiceProfile.model_validate_json(raw)


def save_profile(*, engine: Any, user_id: str, profile: VoiceProfile) -> VoiceProfile:
    q = text(
        """
        INSERT INTO voice_profiles (user_id, profile_json, updated_at)
        VALUES (:user_id, :profile_json, :now)
        ON CONFLICT(user_id) DO UPDATE SET
            profile_json = excluded.profile_json,
            updated_at = excluded.updated_at
        """
    )
    with engine.begin() as conn:
        conn.execute(
            q,
            {
                "user_id": user_id,
                "profile_json": profile.model_dump_json(),
                "now": to_db_ts(now_utc()),
            },
        )
    return profile
