"""Core records: users, events, reminders and tasks.

Enum values are the strings stored in the database and exchanged over the
HTTP API, so they must stay stable.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


def ensure_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes so comparisons never mix the two kinds."""

    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def resolve_timezone(name: str | None) -> tzinfo:
    """Look up an IANA zone such as "America/New_York"; unknown names resolve to UTC."""

    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def check_timezone(name: str) -> str:
    """Return ``name`` if it is a known IANA zone, else raise ValueError."""

    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e
    return name


class EventCategory(str, Enum):
    COURT = "Court"
    WORK = "Work"
    FAMILY = "Family"
    PERSONAL = "Personal"
    RECOVERY = "Recovery"
    OTHER = "Other"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class RecurrenceType(str, Enum):
    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class ReminderUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"


class NotificationChannel(str, Enum):
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class EventStatus(str, Enum):
    """Lifecycle state of an event. Deletion is always a hard delete."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SubscriptionTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    ELITE = "elite"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CommandType(str, Enum):
    TASK = "task"
    EVENT = "event"
    MIXED = "mixed"


class LeadTime(BaseModel):
    """How long before an event a reminder fires."""

    value: int = Field(ge=0, description="Number of units before the event")
    unit: ReminderUnit = Field(description="Unit of the lead time")

    def as_timedelta(self) -> timedelta:
        return timedelta(**{self.unit.value: self.value})

    @classmethod
    def parse(cls, raw: str) -> LeadTime:
        """Parse a "<value> <unit>" string such as "2 hours"."""

        parts = raw.strip().split()
        if len(parts) != 2:
            raise ValueError(f"Invalid lead time {raw!r}; expected '<value> <unit>'")
        unit = parts[1].lower()
        if not unit.endswith("s"):
            unit += "s"
        return cls(value=int(parts[0]), unit=ReminderUnit(unit))


DEFAULT_LEAD_TIMES: list[LeadTime] = [
    LeadTime(value=14, unit=ReminderUnit.DAYS),
    LeadTime(value=7, unit=ReminderUnit.DAYS),
    LeadTime(value=3, unit=ReminderUnit.DAYS),
    LeadTime(value=1, unit=ReminderUnit.DAYS),
    LeadTime(value=2, unit=ReminderUnit.HOURS),
    LeadTime(value=1, unit=ReminderUnit.HOURS),
]


class User(BaseModel):
    """An account. The password hash never leaves the repository layer."""

    id: str
    name: str
    email: str
    phone_number: str | None = None
    timezone: str = "UTC"
    language: str = "en"
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    subscription_status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    stripe_customer_id: str | None = None
    default_reminders: list[LeadTime] = Field(default_factory=lambda: list(DEFAULT_LEAD_TIMES))
    notification_channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.PUSH, NotificationChannel.EMAIL]
    )
    created_at: datetime
    updated_at: datetime
    last_active_at: datetime | None = None

    @property
    def is_suspended(self) -> bool:
        return self.subscription_status == SubscriptionStatus.SUSPENDED

    def local_now(self) -> datetime:
        """Current time in the account's own timezone."""
        return datetime.now(resolve_timezone(self.timezone))


class EventCreate(BaseModel):
    """Fields needed to create an event, from the API or from voice capture."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    category: EventCategory = EventCategory.OTHER
    priority: Priority = Priority.MEDIUM
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    is_all_day: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_end_date: datetime | None = None
    prep_tasks: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", "recurrence_end_date")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)

    @model_validator(mode="after")
    def _end_after_start(self) -> EventCreate:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Event(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None = None
    category: EventCategory = EventCategory.OTHER
    priority: Priority = Priority.MEDIUM
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    is_all_day: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_end_date: datetime | None = None
    status: EventStatus = EventStatus.ACTIVE
    prep_tasks: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class Reminder(BaseModel):
    id: str
    event_id: str
    user_id: str
    remind_at: datetime
    value: int
    unit: ReminderUnit
    is_sent: bool = False
    sent_at: datetime | None = None
    delivery_failed: bool = False
    notification_channels: list[NotificationChannel] = Field(default_factory=list)
    created_at: datetime


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    priority: Priority = Priority.MEDIUM


class Task(BaseModel):
    id: str
    user_id: str
    title: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PushSubscription(BaseModel):
    """A browser PushManager subscription persisted for an account."""

    id: str
    user_id: str
    endpoint: str
    p256dh: str
    auth: str
    created_at: datetime

    def as_subscription_info(self) -> dict[str, object]:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
