"""Voice capture models.

A parsed command is ephemeral: it is produced per utterance and turned into
events and tasks straight away. Only the voice profile is persisted.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from remind.models.domain import CommandType


class VoiceTrigger(BaseModel):
    """A wake phrase that activates command parsing on a transcript."""

    id: str
    name: str
    command: str = Field(min_length=1)
    is_active: bool = True
    type: str = Field(default="single", pattern="^(single|continuous)$")


class VoiceProfile(BaseModel):
    triggers: list[VoiceTrigger] = Field(default_factory=list)
    default_trigger: str = "hey wanda"
    is_continuous_listening: bool = False
    sensitivity: float = Field(default=0.8, ge=0.0, le=1.0)
    language: str = "en-US"
    auto_create: bool = True


class ParsedEvent(BaseModel):
    title: str
    date: datetime
    confidence: float = Field(ge=0.0, le=1.0)


class ParsedVoiceCommand(BaseModel):
    type: CommandType = CommandType.MIXED
    tasks: list[str] = Field(default_factory=list)
    events: list[ParsedEvent] = Field(default_factory=list)
    raw_input: str = ""
    trigger: str = ""
