"""Heuristics for quick-add reminders: priority, urgency and tags."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from remind.models import Priority

URGENCY_KEYWORDS = ("urgent", "asap", "immediately", "critical", "important", "deadline")

_TIME_REFERENCE_PATTERNS = (
    re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm)", re.IGNORECASE),
    re.compile(r"(\d{1,2})\s*(am|pm)", re.IGNORECASE),
    re.compile(r"tomorrow", re.IGNORECASE),
    re.compile(r"next week", re.IGNORECASE),
    re.compile(r"this weekend", re.IGNORECASE),
    re.compile(r"in (\d+)\s*(minutes?|hours?|days?)", re.IGNORECASE),
)

# First match wins, so order matters.
_QUICK_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("work", ("meeting", "call", "email", "project", "deadline", "presentation")),
    ("personal", ("family", "mom", "dad", "friend", "birthday", "anniversary")),
    ("health", ("doctor", "appointment", "medicine", "exercise", "gym")),
    ("shopping", ("buy", "purchase", "grocery", "store", "shopping")),
)

_TAG_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("call", ("call", "phone")),
    ("email", ("email",)),
    ("meeting", ("meeting",)),
    ("shopping", ("buy", "purchase")),
    ("health", ("doctor", "medical")),
    ("finance", ("pay", "bill")),
)


@dataclass(frozen=True)
class QuickAddInsights:
    priority: Priority
    category: str
    is_urgent: bool
    has_time_reference: bool
    tags: list[str] = field(default_factory=list)


def extract_priority(text: str) -> Priority:
    """Map spoken priority hints ("asap", "whenever") to a priority."""

    lowered = text.lower()
    if any(word in lowered for word in ("urgent", "asap", "emergency")):
        return Priority.URGENT
    if any(word in lowered for word in ("important", "high priority", "critical")):
        return Priority.HIGH
    if any(word in lowered for word in ("low priority", "whenever", "sometime")):
        return Priority.LOW
    return Priority.MEDIUM


def extract_tags(text: str) -> list[str]:
    lowered = text.lower()
    return [tag for tag, words in _TAG_RULES if any(word in lowered for word in words)]


def has_time_reference(text: str) -> bool:
    return any(p.search(text) for p in _TIME_REFERENCE_PATTERNS)


def analyze_quick_add(title: str, notes: str | None = None) -> QuickAddInsights:
    """Derive priority and a coarse category for a quick-add reminder.

    Urgency keywords make it High; no urgency and no time reference make it Low.
    """

    combined = f"{title} {notes or ''}".lower()
    is_urgent = any(keyword in combined for keyword in URGENCY_KEYWORDS)
    time_ref = has_time_reference(title + (notes or ""))

    priority = Priority.MEDIUM
    if is_urgent:
        priority = Priority.HIGH
    elif not time_ref:
        priority = Priority.LOW

    category = "general"
    lowered_title = title.lower()
    for name, keywords in _QUICK_CATEGORIES:
        if any(keyword in lowered_title for keyword in keywords):
            category = name
            break

    return QuickAddInsights(
        priority=priority,
        category=category,
        is_urgent=is_urgent,
        has_time_reference=time_ref,
        tags=extract_tags(combined),
    )
