"""Voice command interpretation.

A transcript is checked for an active trigger phrase, the trigger is removed
and the remainder is split into sentences. Each sentence is classified as a
task or an event by keyword scoring; events go through the natural-language
date parser. Everything here is a pure transformation: creating records from
a parsed command is up to the caller.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

import structlog

from remind.models import (
    CommandType,
    EventCreate,
    ParsedEvent,
    ParsedVoiceCommand,
    Priority,
    RecurrenceType,
    TaskCreate,
    VoiceProfile,
    VoiceTrigger,
)
from remind.nlp.categorization import CategoryClassifier
from remind.nlp.natural_language import parse_natural_language

logger = structlog.get_logger()


EVENT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_EVENT_DURATION = timedelta(hours=1)

# Applied in order; each pass splits the fragments produced by the previous one.
SENTENCE_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s+and\s+", re.IGNORECASE),
    re.compile(r"\s+but\s+", re.IGNORECASE),
    re.compile(r"\s+also\s+", re.IGNORECASE),
    re.compile(r"\s+then\s+", re.IGNORECASE),
    re.compile(r"\s+after\s+", re.IGNORECASE),
    re.compile(r"\s+before\s+", re.IGNORECASE),
    re.compile(r"\s+plus\s+", re.IGNORECASE),
    re.compile(r"\s*,\s*"),
    re.compile(r"\s*;\s*"),
)

EVENT_INDICATORS: tuple[str, ...] = (
    "meeting", "appointment", "call", "conference", "lunch", "dinner",
    "at ", "on ", "tomorrow", "today", "next week", "next month",
    "am", "pm", ":", "o'clock", "morning", "afternoon", "evening",
    "schedule", "book", "plan", "set up", "arrange",
)

TASK_INDICATORS: tuple[str, ...] = (
    "get", "buy", "pick up", "grab", "remember", "don't forget",
    "todo", "task", "need to", "have to", "should", "must",
    "grocery", "eggs", "milk", "bread", "shopping", "errand",
)

_HAS_TIME_RE = re.compile(
    r"\d{1,2}:\d{2}|\d{1,2}\s*(?:am|pm)|tomorrow|today|next|morning|afternoon|evening"
)


def default_triggers() -> list[VoiceTrigger]:
    return [
        VoiceTrigger(id="default-schedule", name="Schedule Command", command="schedule"),
        VoiceTrigger(id="default-remind", name="Remind Command", command="remind me"),
        VoiceTrigger(
            id="custom-wanda",
            name="Custom Wanda",
            command="hey wanda",
            is_active=False,
            type="continuous",
        ),
    ]


def default_profile() -> VoiceProfile:
    return VoiceProfile(triggers=default_triggers())


def split_into_sentences(text: str) -> list[str]:
    """Split an utterance on conjunctions, commas and semicolons.

    Empty fragments are dropped and the rest are whitespace-trimmed.
    """

    sentences = [text]
    for separator in SENTENCE_SEPARATORS:
        next_sentences: list[str] = []
        for sentence in sentences:
            next_sentences.extend(separator.split(sentence))
        sentences = next_sentences
    return [s.strip() for s in sentences if s.strip()]


def analyze_sentence_type(sentence: str) -> CommandType:
    """Classify one sentence as an event, a task or undecided (mixed)."""

    lowered = sentence.lower()
    event_score = sum(1 for indicator in EVENT_INDICATORS if indicator in lowered)
    task_score = sum(1 for indicator in TASK_INDICATORS if indicator in lowered)
    has_time = _HAS_TIME_RE.search(lowered) is not None

    if has_time or event_score > task_score:
        return CommandType.EVENT
    if task_score > event_score:
        return CommandType.TASK
    return CommandType.MIXED


def parse_command(text: str, *, trigger: str = "", now: datetime | None = None) -> ParsedVoiceCommand:
    """Turn a cleaned utterance (trigger already removed) into tasks and events."""

    command = ParsedVoiceCommand(raw_input=text, trigger=trigger)

    for sentence in split_into_sentences(text):
        kind = analyze_sentence_type(sentence)
        if kind == CommandType.TASK:
            command.tasks.append(sentence)
            continue

        parsed = parse_natural_language(sentence, now=now)
        if kind == CommandType.EVENT or parsed.confidence > EVENT_CONFIDENCE_THRESHOLD:
            command.events.append(
                ParsedEvent(title=parsed.title, date=parsed.date, confidence=parsed.confidence)
            )
        else:
            command.tasks.append(sentence)

    if command.tasks and command.events:
        command.type = CommandType.MIXED
    elif command.tasks:
        command.type = CommandType.TASK
    elif command.events:
        command.type = CommandType.EVENT
    else:
        command.type = CommandType.MIXED

    return command


class VoiceCommandInterpreter:
    """Matches trigger phrases and parses commands for one voice profile.

    Instances are constructed explicitly per profile; there is no shared
    global interpreter.
    """

    def __init__(self, profile: VoiceProfile | None = None) -> None:
        self._profile = profile.model_copy(deep=True) if profile is not None else default_profile()

    @property
    def profile(self) -> VoiceProfile:
        return self._profile.model_copy(deep=True)

    def update_profile(self, profile: VoiceProfile) -> None:
        self._profile = profile.model_copy(deep=True)

    def add_trigger(self, trigger: VoiceTrigger) -> None:
        if any(t.id == trigger.id for t in self._profile.triggers):
            raise ValueError(f"Trigger {trigger.id!r} already exists")
        self._profile.triggers.append(trigger)

    def remove_trigger(self, trigger_id: str) -> bool:
        before = len(self._profile.triggers)
        self._profile.triggers = [t for t in self._profile.triggers if t.id != trigger_id]
        return len(self._profile.triggers) != before

    def find_matching_trigger(self, transcript: str) -> VoiceTrigger | None:
        """Return the longest active trigger contained in the transcript."""

        lowered = transcript.lower()
        active = sorted(
            (t for t in self._profile.triggers if t.is_active),
            key=lambda t: len(t.command),
            reverse=True,
        )
        for trigger in active:
            if trigger.command.lower() in lowered:
                return trigger
        return None

    def process_transcript(
        self,
        transcript: str,
        *,
        now: datetime | None = None,
    ) -> ParsedVoiceCommand | None:
        """Parse a transcript, or return None when no active trigger is present."""

        trigger = self.find_matching_trigger(transcript)
        if trigger is None:
            logger.debug("voice_transcript_ignored", reason="no_trigger")
            return None

        pattern = re.compile(re.escape(trigger.command), re.IGNORECASE)
        cleaned = pattern.sub("", transcript, count=1).strip()
        command = parse_command(cleaned, trigger=trigger.command, now=now)
        logger.info(
            "voice_command_parsed",
            trigger=trigger.command,
            command_type=command.type.value,
            tasks=len(command.tasks),
            events=len(command.events),
        )
        return command


def create_events_from_command(
    command: ParsedVoiceCommand,
    classifier: CategoryClassifier,
) -> list[EventCreate]:
    """Build event records for every event in a parsed command."""

    events: list[EventCreate] = []
    for parsed in command.events:
        category = classifier.classify(parsed.title).category
        events.append(
            EventCreate(
                title=parsed.title[:200],
                description=f'Created via voice command: "{command.trigger}"',
                category=category,
                priority=Priority.MEDIUM,
                start_date=parsed.date,
                end_date=parsed.date + DEFAULT_EVENT_DURATION,
                is_all_day=False,
                recurrence_type=RecurrenceType.NONE,
            )
        )
    return events


def create_tasks_from_command(command: ParsedVoiceCommand) -> list[TaskCreate]:
    return [TaskCreate(title=task[:200], priority=Priority.MEDIUM) for task in command.tasks]
