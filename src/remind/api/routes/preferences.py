"""Per-account reminder preferences."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from remind.api.dependencies import get_current_user, get_engine
from remind.api.models import PreferencesResponse, PreferencesUpdate
from remind.exceptions import NotFoundError
from remind.models import User
from remind.repository import users as user_repo

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


def _to_response(user: User) -> PreferencesResponse:
    return PreferencesResponse(
        name=user.name,
        phone_number=user.phone_number,
        timezone=user.timezone,
        language=user.language,
        default_reminders=user.default_reminders,
        notification_channels=user.notification_channels,
    )


@router.get("", response_model=PreferencesResponse)
def get_preferences(user: User = Depends(get_current_user)) -> PreferencesResponse:
    return _to_response(user)


@router.put("", response_model=PreferencesResponse)
def update_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> PreferencesResponse:
    changes = {name: getattr(body, name) for name in body.model_fields_set}
    updated = user_repo.update_preferences(engine=engine, user_id=user.id, **changes)
    if updated is None:
        raise NotFoundError("User not found")
    return _to_response(updated)
