"""Events API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from remind.api.dependencies import get_current_user, get_engine
from remind.api.models import EventDetail, EventListResponse, EventUpdate, SuccessResponse
from remind.exceptions import NotFoundError, ValidationError
from remind.models import EventCategory, EventCreate, EventStatus, User, ensure_aware
from remind.repository import events as event_repo
from remind.repository import reminders as reminder_repo

logger = structlog.get_logger()

router = APIRouter(prefix="/api/events", tags=["events"])

# Fields an update may clear by sending null.
_NULLABLE = {"description", "end_date", "location", "recurrence_end_date"}


@router.get("", response_model=EventListResponse)
def list_events(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    category: EventCategory | None = None,
    status: EventStatus | None = None,
    search: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=500, ge=1, le=5000),
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> EventListResponse:
    events = event_repo.list_events(
        engine=engine,
        user_id=user.id,
        start_date=ensure_aware(start_date),
        end_date=ensure_aware(end_date),
        category=category,
        status=status,
        search=search,
        limit=limit,
    )
    return EventListResponse(events=events, total=len(events))


@router.post("", response_model=EventDetail, status_code=201)
def create_event(
    body: EventCreate,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> EventDetail:
    event, reminders = event_repo.create_event(
        engine=engine,
        user_id=user.id,
        data=body,
        lead_times=user.default_reminders,
        channels=user.notification_channels,
    )
    return EventDetail(**event.model_dump(), reminders=reminders)


@router.get("/{event_id}", response_model=EventDetail)
def get_event(
    event_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> EventDetail:
    event = event_repo.get_event(engine=engine, user_id=user.id, event_id=event_id)
    if event is None:
        raise NotFoundError("Event not found")
    reminders = reminder_repo.list_reminders_for_event(engine=engine, event_id=event.id)
    return EventDetail(**event.model_dump(), reminders=reminders)


@router.put("/{event_id}", response_model=EventDetail)
def update_event(
    event_id: str,
    body: EventUpdate,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> EventDetail:
    current = event_repo.get_event(engine=engine, user_id=user.id, event_id=event_id)
    if current is None:
        raise NotFoundError("Event not found")

    changes = {
        name: getattr(body, name)
        for name in body.model_fields_set
        if getattr(body, name) is not None or name in _NULLABLE
    }
    start = changes.get("start_date") or current.start_date
    end = changes["end_date"] if "end_date" in changes else current.end_date
    if end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")

    event = event_repo.update_event(engine=engine, user_id=user.id, event_id=event_id, changes=changes)
    if event is None:
        raise NotFoundError("Event not found")
    reminders = reminder_repo.list_reminders_for_event(engine=engine, event_id=event.id)
    return EventDetail(**event.model_dump(), reminders=reminders)


@router.delete("/{event_id}", response_model=SuccessResponse)
def delete_event(
    event_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> SuccessResponse:
    if not event_repo.delete_event(engine=engine, user_id=user.id, event_id=event_id):
        raise NotFoundError("Event not found")
    return SuccessResponse()
