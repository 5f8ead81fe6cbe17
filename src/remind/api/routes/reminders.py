"""Reminders API, including natural-language quick add."""

from __future__ import annotations

import time
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, Response

from remind.api.dependencies import get_classifier, get_current_user, get_engine, rate_limit_by_user
from remind.api.models import (
    Pagination,
    QuickAddInsights,
    QuickAddRequest,
    QuickAddResponse,
    ReminderCreateRequest,
    ReminderListResponse,
    ReminderUpdateRequest,
    SuccessResponse,
)
from remind.exceptions import NotFoundError
from remind.models import EventCreate, LeadTime, Reminder, User
from remind.nlp import CategoryClassifier, parse_natural_language
from remind.nlp.quick_capture import analyze_quick_add
from remind.repository import events as event_repo
from remind.repository import reminders as reminder_repo

logger = structlog.get_logger()

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.get("", response_model=ReminderListResponse)
def list_reminders(
    event_id: str | None = None,
    include_sent: bool = True,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> ReminderListResponse:
    reminders, total = reminder_repo.list_reminders(
        engine=engine,
        user_id=user.id,
        event_id=event_id,
        include_sent=include_sent,
        limit=limit,
        offset=offset,
    )
    return ReminderListResponse(
        reminders=reminders,
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total),
    )


@router.post("", response_model=Reminder, status_code=201)
def create_reminder(
    body: ReminderCreateRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Reminder:
    event = event_repo.get_event(engine=engine, user_id=user.id, event_id=body.event_id)
    if event is None:
        raise NotFoundError("Event not found")

    return reminder_repo.create_reminder(
        engine=engine,
        user_id=user.id,
        event_id=event.id,
        start_date=event.start_date,
        lead_time=LeadTime(value=body.value, unit=body.unit),
        channels=body.notification_channels or user.notification_channels,
    )


@router.post(
    "/quick",
    response_model=QuickAddResponse,
    status_code=201,
    dependencies=[Depends(rate_limit_by_user("quick_add"))],
)
def quick_add(
    body: QuickAddRequest,
    response: Response,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
    classifier: CategoryClassifier = Depends(get_classifier),
) -> QuickAddResponse:
    """Create an event and its default reminders from one line of text."""

    started = time.perf_counter()

    parsed = parse_natural_language(body.title, now=user.local_now())
    date_inferred = body.due_at is None and parsed.date_inferred
    title = parsed.title if date_inferred else body.title
    insights = analyze_quick_add(body.title, body.notes)
    category = classifier.classify(body.title)

    event, reminders = event_repo.create_event(
        engine=engine,
        user_id=user.id,
        data=EventCreate(
            title=title,
            description=body.notes,
            category=category.category,
            priority=insights.priority,
            start_date=body.due_at or parsed.date,
        ),
        lead_times=user.default_reminders,
        channels=user.notification_channels,
    )

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Processing-Time"] = str(elapsed_ms)
    response.headers["X-AI-Processed"] = "true"
    logger.info(
        "quick_add_created",
        event_id=event.id,
        date_inferred=date_inferred,
        priority=insights.priority.value,
        processing_time_ms=elapsed_ms,
    )

    return QuickAddResponse(
        event=event,
        reminders=reminders,
        ai_insights=QuickAddInsights(
            priority=insights.priority,
            category=insights.category,
            event_category=category.category,
            is_urgent=insights.is_urgent,
            has_time_reference=insights.has_time_reference,
            tags=insights.tags,
            date_inferred=date_inferred,
            confidence=parsed.confidence if body.due_at is None else 1.0,
            processing_time_ms=elapsed_ms,
        ),
    )


@router.get("/{reminder_id}", response_model=Reminder)
def get_reminder(
    reminder_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Reminder:
    reminder = reminder_repo.get_reminder(engine=engine, user_id=user.id, reminder_id=reminder_id)
    if reminder is None:
        raise NotFoundError("Reminder not found")
    return reminder


@router.put("/{reminder_id}", response_model=Reminder)
def update_reminder(
    reminder_id: str,
    body: ReminderUpdateRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Reminder:
    current = reminder_repo.get_reminder(engine=engine, user_id=user.id, reminder_id=reminder_id)
    if current is None:
        raise NotFoundError("Reminder not found")

    lead_time = None
    remind_at = None
    if body.value is not None or body.unit is not None:
        lead_time = LeadTime(
            value=body.value if body.value is not None else current.value,
            unit=body.unit or current.unit,
        )
        event = event_repo.get_event(engine=engine, user_id=user.id, event_id=current.event_id)
        if event is None:
            raise NotFoundError("Event not found")
        remind_at = event.start_date - lead_time.as_timedelta()

    updated = reminder_repo.update_reminder(
        engine=engine,
        user_id=user.id,
        reminder_id=reminder_id,
        remind_at=remind_at,
        lead_time=lead_time,
        channels=body.notification_channels,
        is_sent=body.is_sent,
    )
    if updated is None:
        raise NotFoundError("Reminder not found")
    return updated


@router.delete("/{reminder_id}", response_model=SuccessResponse)
def delete_reminder(
    reminder_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> SuccessResponse:
    if not reminder_repo.delete_reminder(engine=engine, user_id=user.id, reminder_id=reminder_id):
        raise NotFoundError("Reminder not found")
    return SuccessResponse()


@router.post("/{reminder_id}/sent", response_model=Reminder)
def mark_reminder_sent(
    reminder_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> Reminder:
    reminder = reminder_repo.update_reminder(
        engine=engine, user_id=user.id, reminder_id=reminder_id, is_sent=True
    )
    if reminder is None:
        raise NotFoundError("Reminder not found")
    return reminder
