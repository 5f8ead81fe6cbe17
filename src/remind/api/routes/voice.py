"""Voice capture API: command parsing, categorisation and voice profiles."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from remind.api.dependencies import get_classifier, get_current_user, get_engine
from remind.api.models import (
    CategorizeRequest,
    CategorizeResponse,
    VoiceCommandRequest,
    VoiceCommandResponse,
    VoiceParseRequest,
)
from remind.exceptions import ConflictError, NotFoundError
from remind.models import ParsedVoiceCommand, User, VoiceProfile, VoiceTrigger
from remind.nlp import CategoryClassifier, VoiceCommandInterpreter, parse_command
from remind.nlp.categorization import category_description, category_emoji
from remind.nlp.voice_commands import create_events_from_command, create_tasks_from_command, default_profile
from remind.repository import events as event_repo
from remind.repository import tasks as task_repo
from remind.repository import voice_profiles as profile_repo

logger = structlog.get_logger()

router = APIRouter(prefix="/api/voice", tags=["voice"])


def _load_profile(engine: Any, user_id: str) -> VoiceProfile:
    return profile_repo.get_profile(engine=engine, user_id=user_id) or default_profile()


@router.post("/commands", response_model=VoiceCommandResponse)
def process_command(
    body: VoiceCommandRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
    classifier: CategoryClassifier = Depends(get_classifier),
) -> VoiceCommandResponse:
    """Interpret a transcript and, when enabled, create its events and tasks."""

    profile = _load_profile(engine, user.id)
    command = VoiceCommandInterpreter(profile).process_transcript(body.transcript, now=user.local_now())
    if command is None:
        return VoiceCommandResponse(trigger_matched=False)

    auto_create = profile.auto_create if body.auto_create is None else body.auto_create
    if not auto_create:
        return VoiceCommandResponse(trigger_matched=True, command=command)

    events = []
    for data in create_events_from_command(command, classifier):
        event, _ = event_repo.create_event(
            engine=engine,
            user_id=user.id,
            data=data,
            lead_times=user.default_reminders,
            channels=user.notification_channels,
        )
        events.append(event)
    tasks = task_repo.create_tasks(engine=engine, user_id=user.id, tasks=create_tasks_from_command(command))

    logger.info("voice_command_applied", user_id=user.id, events=len(events), tasks=len(tasks))
    return VoiceCommandResponse(trigger_matched=True, command=command, events=events, tasks=tasks)


@router.post("/parse", response_model=ParsedVoiceCommand)
def parse(body: VoiceParseRequest, user: User = Depends(get_current_user)) -> ParsedVoiceCommand:
    return parse_command(body.text, trigger=body.trigger, now=user.local_now())


@router.post("/categorize", response_model=CategorizeResponse)
def categorize(
    body: CategorizeRequest,
    user: User = Depends(get_current_user),
    classifier: CategoryClassifier = Depends(get_classifier),
) -> CategorizeResponse:
    if body.hour is not None or body.weekday is not None:
        result = classifier.suggest_from_context(body.text, hour=body.hour, weekday=body.weekday)
    else:
        result = classifier.classify(body.text)
    return CategorizeResponse(
        category=result.category,
        confidence=result.confidence,
        reasoning=result.reasoning,
        description=category_description(result.category),
        emoji=category_emoji(result.category),
    )


@router.get("/profile", response_model=VoiceProfile)
def get_profile(user: User = Depends(get_current_user), engine: Any = Depends(get_engine)) -> VoiceProfile:
    return _load_profile(engine, user.id)


@router.put("/profile", response_model=VoiceProfile)
def put_profile(
    body: VoiceProfile,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> VoiceProfile:
    return profile_repo.save_profile(engine=engine, user_id=user.id, profile=body)


@router.post("/triggers", response_model=VoiceProfile, status_code=201)
def add_trigger(
    body: VoiceTrigger,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> VoiceProfile:
    interpreter = VoiceCommandInterpreter(_load_profile(engine, user.id))
    try:
        interpreter.add_trigger(body)
    except ValueError as e:
        raise ConflictError(str(e)) from e
    return profile_repo.save_profile(engine=engine, user_id=user.id, profile=interpreter.profile)


@router.delete("/triggers/{trigger_id}", response_model=VoiceProfile)
def remove_trigger(
    trigger_id: str,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> VoiceProfile:
    interpreter = VoiceCommandInterpreter(_load_profile(engine, user.id))
    if not interpreter.remove_trigger(trigger_id):
        raise NotFoundError("Trigger not found")
    return profile_repo.save_profile(engine=engine, user_id=user.id, profile=interpreter.profile)
