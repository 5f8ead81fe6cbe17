"""Keyword-based event categorisation.

Each category has a keyword list (1 point per hit) and a few phrase patterns
(2 points per hit). A rule's confidence is
``min(0.95, rule.confidence * score / max(1, hits))`` and the best rule wins
over the ``Other``/0.3 default. Court is decisive: any Court keyword or
pattern yields Court regardless of the other rules' scores.
"""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from dataclasses import dataclass

import structlog

from remind.models import EventCategory

logger = structlog.get_logger()


DEFAULT_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95


@dataclass(frozen=True)
class CategoryRule:
    category: EventCategory
    confidence: float
    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...] = ()
    decisive: bool = False


@dataclass(frozen=True)
class CategoryResult:
    category: EventCategory
    confidence: float
    reasoning: str | None = None


@dataclass(frozen=True)
class CacheInfo:
    hits: int
    misses: int
    size: int
    max_size: int


def _patterns(*raw: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in raw)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        category=EventCategory.COURT,
        confidence=0.9,
        keywords=(
            "court", "hearing", "trial", "judge", "lawyer",
            "attorney", "legal", "lawsuit", "deposition", "mediation",
        ),
        patterns=_patterns(r"court date", r"hearing on", r"trial begins"),
        decisive=True,
    ),
    CategoryRule(
        category=EventCategory.WORK,
        confidence=0.85,
        keywords=(
            "meeting", "conference", "presentation", "client", "project",
            "deadline", "report", "business", "office", "work",
        ),
        patterns=_patterns(r"meeting with", r"client call", r"project deadline"),
    ),
    CategoryRule(
        category=EventCategory.FAMILY,
        confidence=0.9,
        keywords=(
            "family", "mom", "dad", "kids", "children",
            "spouse", "wedding", "birthday", "anniversary", "visit",
        ),
        patterns=_patterns(r"call mom", r"pick up kids", r"family dinner"),
    ),
    CategoryRule(
        category=EventCategory.RECOVERY,
        confidence=0.85,
        keywords=(
            "doctor", "dentist", "medical", "appointment", "health",
            "gym", "exercise", "therapy", "checkup",
        ),
        patterns=_patterns(r"doctor appointment", r"dentist visit", r"gym session"),
    ),
    CategoryRule(
        category=EventCategory.PERSONAL,
        confidence=0.8,
        keywords=(
            "personal", "hobby", "read", "learn", "study",
            "course", "travel", "vacation", "shopping", "errands",
        ),
        patterns=_patterns(r"read book", r"grocery shopping", r"personal time"),
    ),
)

CATEGORY_DESCRIPTIONS: dict[EventCategory, str] = {
    EventCategory.COURT: "Legal and court-related activities",
    EventCategory.WORK: "Professional and business activities",
    EventCategory.FAMILY: "Family and personal relationships",
    EventCategory.PERSONAL: "Personal development and hobbies",
    EventCategory.RECOVERY: "Health, wellness, and medical",
    EventCategory.OTHER: "General activities and miscellaneous",
}

CATEGORY_EMOJIS: dict[EventCategory, str] = {
    EventCategory.COURT: "\u2696\ufe0f",
    EventCategory.WORK: "\U0001f4bc",
    EventCategory.FAMILY: "\U0001f46a",
    EventCategory.PERSONAL: "\U0001f3af",
    EventCategory.RECOVERY: "\U0001f3e5",
    EventCategory.OTHER: "\U0001f4dd",
}


def _score_rule(rule: CategoryRule, text: str, lowered: str) -> tuple[int, int]:
    score = 0
    hits = 0
    for keyword in rule.keywords:
        if keyword in lowered:
            score += 1
            hits += 1
    for pattern in rule.patterns:
        if pattern.search(text):
            score += 2
            hits += 1
    return score, hits


def analyze_text_for_category(text: str) -> CategoryResult:
    """Classify text into one of the six event categories (uncached)."""

    lowered = text.lower()
    best = CategoryResult(EventCategory.OTHER, DEFAULT_CONFIDENCE)

    for rule in CATEGORY_RULES:
        score, hits = _score_rule(rule, text, lowered)
        if hits == 0:
            continue
        confidence = min(MAX_CONFIDENCE, rule.confidence * (score / max(1, hits)))
        if rule.decisive:
            return CategoryResult(rule.category, confidence)
        if confidence > best.confidence:
            best = CategoryResult(rule.category, confidence)

    return best


class CategoryClassifier:
    """Category classifier with a bounded least-recently-used result cache.

    Entries are keyed by the exact input string. A hit moves the entry to the
    most-recent end; inserting past ``cache_size`` evicts the least recently
    used entry.
    """

    def __init__(self, cache_size: int = 1000) -> None:
        if cache_size < 1:
            raise ValueError("cache_size must be at least 1")
        self._cache_size = cache_size
        self._cache: OrderedDict[str, CategoryResult] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def classify(self, text: str) -> CategoryResult:
        with self._lock:
            cached = self._cache.get(text)
            if cached is not None:
                self._cache.move_to_end(text)
                self._hits += 1
                return cached
            self._misses += 1

        result = analyze_text_for_category(text)

        with self._lock:
            self._cache[text] = result
            self._cache.move_to_end(text)
            while len(self._cache) > self._cache_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug("category_cache_evicted", key_length=len(evicted))
        return result

    def suggest_from_context(
        self,
        text: str,
        *,
        hour: int | None = None,
        weekday: int | None = None,
    ) -> CategoryResult:
        """Classify text and boost confidence from when the event happens.

        Args:
            text: Event title or transcript.
            hour: Hour of day (0-23) the event takes place.
            weekday: Day of week with Monday=0, as returned by ``date.weekday()``.
        """

        base = self.classify(text)
        confidence = base.confidence
        reasoning: str | None = None

        if hour is not None:
            if 6 <= hour < 9 and base.category in (EventCategory.PERSONAL, EventCategory.RECOVERY):
                confidence += 0.1
                reasoning = "Early morning activities"
            if 9 <= hour < 17 and base.category == EventCategory.WORK:
                confidence += 0.15
                reasoning = "Business hours"
            if 17 <= hour < 21 and base.category in (EventCategory.FAMILY, EventCategory.PERSONAL):
                confidence += 0.1
                reasoning = "Evening time"

        if weekday is not None and weekday >= 5:
            if base.category in (EventCategory.FAMILY, EventCategory.PERSONAL):
                confidence += 0.1
                reasoning = "Weekend activities"

        return CategoryResult(base.category, min(1.0, round(confidence, 4)), reasoning)

    def cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                max_size=self._cache_size,
            )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0


def category_description(category: EventCategory) -> str:
    return CATEGORY_DESCRIPTIONS[category]


def category_emoji(category: EventCategory) -> str:
    return CATEGORY_EMOJIS[category]
