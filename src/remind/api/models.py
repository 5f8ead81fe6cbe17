"""Request and response models for the RE:MIND API.

Every request body is validated against one of these schemas before a route
handler runs.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from remind.models import (
    Event,
    EventCategory,
    EventStatus,
    LeadTime,
    NotificationChannel,
    ParsedVoiceCommand,
    Priority,
    RecurrenceType,
    Reminder,
    ReminderUnit,
    Task,
    User,
    check_timezone,
    ensure_aware,
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _check_email(value: str) -> str:
    value = value.strip()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


def _coerce_lead_times(value: Any) -> Any:
    if isinstance(value, list):
        return [LeadTime.parse(v) if isinstance(v, str) else v for v in value]
    return value


class ErrorResponse(BaseModel):
    error: str
    status_code: int
    timestamp: datetime


class SuccessResponse(BaseModel):
    success: bool = True


# Auth


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=8, max_length=128)
    phone_number: str | None = None
    timezone: str | None = None
    language: str = "en"

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str | None) -> str | None:
        return None if v is None else check_timezone(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        return _check_email(v)


class AuthResponse(BaseModel):
    user: User
    token: str
    message: str


# Preferences


class PreferencesResponse(BaseModel):
    name: str
    phone_number: str | None = None
    timezone: str
    language: str
    default_reminders: list[LeadTime]
    notification_channels: list[NotificationChannel]


class PreferencesUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone_number: str | None = None
    timezone: str | None = None
    language: str | None = None
    default_reminders: list[LeadTime] | None = None
    notification_channels: list[NotificationChannel] | None = None

    @field_validator("default_reminders", mode="before")
    @classmethod
    def _lead_times(cls, v: Any) -> Any:
        return _coerce_lead_times(v)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str | None) -> str | None:
        return None if v is None else check_timezone(v)


# Events


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    category: EventCategory | None = None
    priority: Priority | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = None
    is_all_day: bool | None = None
    recurrence_type: RecurrenceType | None = None
    recurrence_end_date: datetime | None = None
    status: EventStatus | None = None
    prep_tasks: list[str] | None = None

    @field_validator("start_date", "end_date", "recurrence_end_date")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class EventDetail(Event):
    reminders: list[Reminder] = Field(default_factory=list)


class EventListResponse(BaseModel):
    events: list[Event]
    total: int


# Reminders


class ReminderCreateRequest(BaseModel):
    event_id: str
    value: int = Field(ge=0)
    unit: ReminderUnit
    notification_channels: list[NotificationChannel] | None = None


class ReminderUpdateRequest(BaseModel):
    value: int | None = Field(default=None, ge=0)
    unit: ReminderUnit | None = None
    notification_channels: list[NotificationChannel] | None = None
    is_sent: bool | None = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ReminderListResponse(BaseModel):
    reminders: list[Reminder]
    pagination: Pagination


class QuickAddRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    due_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("title")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("due_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class QuickAddInsights(BaseModel):
    priority: Priority
    category: str
    event_category: EventCategory
    is_urgent: bool
    has_time_reference: bool
    tags: list[str]
    date_inferred: bool
    confidence: float
    processing_time_ms: float


class QuickAddResponse(BaseModel):
    event: Event
    reminders: list[Reminder]
    ai_insights: QuickAddInsights


# Tasks


class TaskUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    priority: Priority | None = None
    completed: bool | None = None


class TaskListResponse(BaseModel):
    tasks: list[Task]


# Voice


class VoiceCommandRequest(BaseModel):
    transcript: str = Field(min_length=1, max_length=2000)
    auto_create: bool | None = None


class VoiceCommandResponse(BaseModel):
    trigger_matched: bool
    command: ParsedVoiceCommand | None = None
    events: list[Event] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)


class VoiceParseRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    trigger: str = ""


class CategorizeRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    hour: int | None = Field(default=None, ge=0, le=23)
    weekday: int | None = Field(default=None, ge=0, le=6)


class CategorizeResponse(BaseModel):
    category: EventCategory
    confidence: float
    reasoning: str | None = None
    description: str
    emoji: str


# Notifications


class EmailNotificationRequest(BaseModel):
    to: str
    subject: str | None = Field(default=None, max_length=200)
    template: Literal["reminder", "welcome", "password_reset", "custom"] = "custom"
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("to")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        return _check_email(v)


class ReminderEmailEvent(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    start_date: datetime
    description: str | None = None
    location: str | None = None
    category: str | None = None
    priority: str | None = None


class PushKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscriptionRequest(BaseModel):
    endpoint: str = Field(min_length=1)
    keys: PushKeys


class PushUnsubscribeRequest(BaseModel):
    endpoint: str = Field(min_length=1)


class PushNotificationRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(default="", max_length=1000)
    data: dict[str, Any] = Field(default_factory=dict)
    subscription: PushSubscriptionRequest | None = None


class SmsNotificationRequest(BaseModel):
    to: str = Field(min_length=3, max_length=32)
    message: str = Field(min_length=1, max_length=1600)


class NotificationResult(BaseModel):
    success: bool = True
    channel: NotificationChannel
    message_id: str | None = None
    delivered: int | None = None


class PushPublicKeyResponse(BaseModel):
    public_key: str | None = None


# Billing


class CheckoutRequest(BaseModel):
    plan_id: str = Field(min_length=1)
    success_url: str | None = None
    cancel_url: str | None = None


class CheckoutResponse(BaseModel):
    url: str


class PlanInfo(BaseModel):
    id: str | None = None
    name: str
    amount: int
    interval: str


class SubscriptionInfo(BaseModel):
    id: str
    status: str
    cancel_at_period_end: bool
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    plan: PlanInfo | None = None


class SubscriptionResponse(BaseModel):
    subscription: SubscriptionInfo | None = None
    message: str | None = None


class CancelSubscriptionRequest(BaseModel):
    subscription_id: str = Field(min_length=1)


class CancelSubscriptionResponse(BaseModel):
    success: bool = True
    subscription: SubscriptionInfo


class WebhookResponse(BaseModel):
    received: bool = True


# Health


class ServiceHealth(BaseModel):
    status: str
    response_time_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    uptime_seconds: float
    services: dict[str, ServiceHealth]
