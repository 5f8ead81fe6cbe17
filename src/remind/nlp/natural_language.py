"""Natural-language date and title extraction for quick capture.

Two rule families are tried against the input in a fixed order:

- time-of-day rules: clock times ("at 3pm", "10:30") and relative offsets
  ("in 2 hours");
- day rules: "tomorrow", "tonight", "this evening", "next <weekday>",
  "next week", "today".

At most one rule from each family applies (first match wins). The day rule
picks the base day, a clock rule sets the time on that day and a relative
offset always wins for the date. Matched spans are removed and what is left
becomes the title.

Confidence is a constant per rule, not a measure of match quality.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog
from dateutil.relativedelta import relativedelta

logger = structlog.get_logger()


FALLBACK_CONFIDENCE = 0.3

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_FILLER_RE = re.compile(r"^(?:remind me to|reminder to|remind me|remind|to)\s+", re.IGNORECASE)
_DANGLING_RE = re.compile(r"\s+(?:on|at|by)$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

# A bare "at 5" only counts as a clock time when nothing word-like follows it.
_BARE_HOUR_FOLLOW_RE = re.compile(
    r"^\s*(?:$|[,.;!?]|(?:tomorrow|tonight|today|this|next|on)\b)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ParsedReminder:
    """Result of parsing a free-text reminder.

    Attributes:
        title: Cleaned title with temporal phrases and filler removed.
        date: Resolved date and time.
        confidence: Highest confidence of the rules that matched, or 0.3.
        date_inferred: False when no temporal phrase was recognised and
            ``date`` is simply the parse time.
        matched_rules: Names of the rules that contributed.
    """

    title: str
    date: datetime
    confidence: float
    date_inferred: bool = True
    matched_rules: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class _TimeMatch:
    rule: str
    span: tuple[int, int]
    confidence: float
    hour: int | None = None
    minute: int = 0
    has_meridiem: bool = False
    offset: timedelta | relativedelta | None = None


@dataclass(frozen=True)
class _DayMatch:
    rule: str
    span: tuple[int, int]
    confidence: float
    days_ahead: int
    default_hour: int | None
    evening: bool = False


def _to_24h(hour: int, meridiem: str | None) -> int | None:
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour < 12:
            return hour + 12
        if meridiem == "am" and hour == 12:
            return 0
        return hour
    if not 0 <= hour <= 23:
        return None
    return hour


def _match_at_clock(text: str) -> _TimeMatch | None:
    pattern = re.compile(
        r"\bat\s+(\d{1,2})(?::(\d{2}))?(?:\s*(am|pm)\b|\s*(o'?clock)\b)?",
        re.IGNORECASE,
    )
    for m in pattern.finditer(text):
        raw_hour, raw_minute, meridiem, oclock = m.groups()
        if raw_minute is None and meridiem is None and oclock is None:
            if not _BARE_HOUR_FOLLOW_RE.match(text[m.end():]):
                continue
        hour = _to_24h(int(raw_hour), meridiem)
        minute = int(raw_minute) if raw_minute is not None else 0
        if hour is None or minute > 59:
            continue
        return _TimeMatch(
            rule="at_clock",
            span=m.span(),
            confidence=0.9,
            hour=hour,
            minute=minute,
            has_meridiem=meridiem is not None,
        )
    return None


def _match_relative(text: str) -> _TimeMatch | None:
    m = re.search(
        r"\bin\s+(\d+)\s*(minutes?|mins?|hours?|hrs?|days?|weeks?|months?)\b",
        text,
        re.IGNORECASE,
    )
    if m is None:
        return None
    value = int(m.group(1))
    unit = m.group(2).lower()
    offset: timedelta | relativedelta
    if unit.startswith("min"):
        offset = timedelta(minutes=value)
    elif unit.startswith("h"):
        offset = timedelta(hours=value)
    elif unit.startswith("day"):
        offset = timedelta(days=value)
    elif unit.startswith("week"):
        offset = timedelta(weeks=value)
    else:
        offset = relativedelta(months=value)
    return _TimeMatch(rule="relative", span=m.span(), confidence=0.95, offset=offset)


def _match_meridiem(text: str) -> _TimeMatch | None:
    pattern = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
    for m in pattern.finditer(text):
        hour = _to_24h(int(m.group(1)), m.group(3))
        minute = int(m.group(2)) if m.group(2) is not None else 0
        if hour is None or minute > 59:
            continue
        return _TimeMatch(
            rule="meridiem",
            span=m.span(),
            confidence=0.9,
            hour=hour,
            minute=minute,
            has_meridiem=True,
        )
    return None


def _match_clock_24h(text: str) -> _TimeMatch | None:
    m = re.search(r"\b([01]?\d|2[0-3]):([0-5]\d)\b", text)
    if m is None:
        return None
    return _TimeMatch(
        rule="clock_24h",
        span=m.span(),
        confidence=0.85,
        hour=int(m.group(1)),
        minute=int(m.group(2)),
    )


_TIME_RULES = (_match_at_clock, _match_relative, _match_meridiem, _match_clock_24h)


def _match_day(text: str, now: datetime) -> _DayMatch | None:
    m = re.search(r"\btomorrow\b", text, re.IGNORECASE)
    if m:
        return _DayMatch("tomorrow", m.span(), 0.9, days_ahead=1, default_hour=9)

    m = re.search(r"\btonight\b", text, re.IGNORECASE)
    if m:
        return _DayMatch("tonight", m.span(), 0.9, days_ahead=0, default_hour=20, evening=True)

    m = re.search(r"\bthis evening\b", text, re.IGNORECASE)
    if m:
        return _DayMatch("this_evening", m.span(), 0.9, days_ahead=0, default_hour=18, evening=True)

    m = re.search(r"\bnext\s+(" + "|".join(_WEEKDAYS) + r")\b", text, re.IGNORECASE)
    if m:
        target = _WEEKDAYS.index(m.group(1).lower())
        # Never today: "next monday" on a Monday is a week out.
        days_ahead = (target - now.weekday() + 7) % 7 or 7
        return _DayMatch("next_weekday", m.span(), 0.85, days_ahead=days_ahead, default_hour=9)

    m = re.search(r"\bnext\s+week\b", text, re.IGNORECASE)
    if m:
        return _DayMatch("next_week", m.span(), 0.8, days_ahead=7, default_hour=9)

    m = re.search(r"\btoday\b", text, re.IGNORECASE)
    if m:
        return _DayMatch("today", m.span(), 0.8, days_ahead=0, default_hour=None)

    return None


def _strip_spans(text: str, spans: list[tuple[int, int]]) -> str:
    for start, end in sorted(spans, reverse=True):
        text = f"{text[:start]} {text[end:]}"
    return text


def _clean_title(title: str) -> str:
    title = _WHITESPACE_RE.sub(" ", title).strip()
    title = _FILLER_RE.sub("", title)
    title = _DANGLING_RE.sub("", title)
    return title.strip(" ,;")


def parse_natural_language(text: str, *, now: datetime | None = None) -> ParsedReminder:
    """Extract a title, a date and a confidence score from free text.

    Args:
        text: Input such as "Call mom tomorrow at 3pm".
        now: Reference time. Defaults to the current local time.

    Returns:
        ParsedReminder. When no temporal phrase matches, ``date`` is ``now``,
        ``confidence`` is 0.3 and ``date_inferred`` is False; callers that
        schedule reminders should treat that as "no date given".
    """

    if now is None:
        now = datetime.now().astimezone()

    time_match: _TimeMatch | None = None
    for rule in _TIME_RULES:
        time_match = rule(text)
        if time_match is not None:
            break

    day_match = _match_day(text, now)

    spans: list[tuple[int, int]] = []
    matched: list[str] = []
    confidence = 0.0
    date = now

    if day_match is not None:
        date = now + timedelta(days=day_match.days_ahead)
        if day_match.default_hour is not None:
            date = date.replace(hour=day_match.default_hour, minute=0, second=0, microsecond=0)
        spans.append(day_match.span)
        matched.append(day_match.rule)
        confidence = max(confidence, day_match.confidence)

    if time_match is not None:
        if time_match.offset is not None:
            date = now + time_match.offset
        else:
            hour = time_match.hour or 0
            if day_match is not None and day_match.evening and not time_match.has_meridiem and hour < 12:
                hour += 12
            date = date.replace(hour=hour, minute=time_match.minute, second=0, microsecond=0)
        spans.append(time_match.span)
        matched.append(time_match.rule)
        confidence = max(confidence, time_match.confidence)

    if not matched:
        logger.warning("natural_language_date_defaulted", text=text)
        title = _clean_title(text) or text.strip()
        return ParsedReminder(
            title=title,
            date=now,
            confidence=FALLBACK_CONFIDENCE,
            date_inferred=False,
        )

    title = _clean_title(_strip_spans(text, spans))
    if not title:
        title = text.strip()
        confidence = FALLBACK_CONFIDENCE

    return ParsedReminder(
        title=title,
        date=date,
        confidence=confidence,
        date_inferred=True,
        matched_rules=tuple(matched),
    )
