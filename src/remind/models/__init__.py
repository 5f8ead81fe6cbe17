"""Domain models for RE:MIND."""

from remind.models.domain import (
    DEFAULT_LEAD_TIMES,
    ChangeType,
    CommandType,
    Event,
    EventCategory,
    EventCreate,
    EventStatus,
    LeadTime,
    NotificationChannel,
    Priority,
    PushSubscription,
    RecurrenceType,
    Reminder,
    ReminderUnit,
    SubscriptionStatus,
    SubscriptionTier,
    Task,
    TaskCreate,
    User,
    check_timezone,
    ensure_aware,
    resolve_timezone,
)
from remind.models.voice import ParsedEvent, ParsedVoiceCommand, VoiceProfile, VoiceTrigger

__all__ = [
    "DEFAULT_LEAD_TIMES",
    "ChangeType",
    "CommandType",
    "Event",
    "EventCategory",
    "EventCreate",
    "EventStatus",
    "LeadTime",
    "NotificationChannel",
    "ParsedEvent",
    "ParsedVoiceCommand",
    "Priority",
    "PushSubscription",
    "RecurrenceType",
    "Reminder",
    "ReminderUnit",
    "SubscriptionStatus",
    "SubscriptionTier",
    "Task",
    "TaskCreate",
    "User",
    "VoiceProfile",
    "VoiceTrigger",
    "check_timezone",
    "ensure_aware",
    "resolve_timezone",
]
