"""Direct notification endpoints (email, push, SMS) and push subscriptions."""

from __future__ import annotations

from typing import Any

import pydantic
import structlog
from fastapi import APIRouter, Depends

from remind.api.dependencies import (
    get_app_settings,
    get_current_user,
    get_email_sender,
    get_engine,
    get_push_sender,
    get_sms_sender,
)
from remind.api.models import (
    EmailNotificationRequest,
    NotificationResult,
    PushNotificationRequest,
    PushPublicKeyResponse,
    PushSubscriptionRequest,
    PushUnsubscribeRequest,
    ReminderEmailEvent,
    SmsNotificationRequest,
    SuccessResponse,
)
from remind.config import Settings
from remind.exceptions import NotFoundError, SubscriptionExpired, ValidationError
from remind.models import NotificationChannel, User
from remind.notifications import EmailSender, PushSender, SmsSender
from remind.notifications.templates import (
    ReminderContent,
    RenderedEmail,
    render_password_reset_email,
    render_reminder_email,
    render_welcome_email,
)
from remind.repository import push_subscriptions as push_repo

logger = structlog.get_logger()

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
push_router = APIRouter(prefix="/api/push", tags=["notifications"])


def _render(body: EmailNotificationRequest, *, app_url: str, user: User) -> RenderedEmail:
    data = body.data
    if body.template == "reminder":
        try:
            event = ReminderEmailEvent.model_validate(data.get("event") or {})
        except pydantic.ValidationError as e:
            raise ValidationError("Reminder template requires data.event with title and start_date") from e
        rendered = render_reminder_email(
            ReminderContent(
                title=event.title,
                start=event.start_date,
                description=event.description,
                location=event.location,
                category=event.category,
                priority=event.priority,
            ),
            app_url=app_url,
        )
    elif body.template == "welcome":
        rendered = render_welcome_email(str(data.get("name") or user.name), app_url=app_url)
    elif body.template == "password_reset":
        token = data.get("reset_token")
        if not token:
            raise ValidationError("Password reset template requires data.reset_token")
        rendered = render_password_reset_email(str(token), app_url=app_url)
    else:
        if not body.subject:
            raise ValidationError("Missing required field: subject")
        html = str(data.get("html") or "")
        text = str(data.get("text") or "")
        if not html and not text:
            raise ValidationError("Custom email requires data.html or data.text")
        return RenderedEmail(subject=body.subject, html=html, text=text)

    if body.subject:
        return RenderedEmail(subject=body.subject, html=rendered.html, text=rendered.text)
    return rendered


@router.post("/email", response_model=NotificationResult)
def send_email(
    body: EmailNotificationRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    sender: EmailSender = Depends(get_email_sender),
) -> NotificationResult:
    email = _render(body, app_url=settings.app_url, user=user)
    message_id = sender.send_rendered(to=body.to, email=email)
    return NotificationResult(channel=NotificationChannel.EMAIL, message_id=message_id)


@router.get("/push", response_model=PushPublicKeyResponse)
def push_public_key(
    user: User = Depends(get_current_user),
    sender: PushSender = Depends(get_push_sender),
) -> PushPublicKeyResponse:
    return PushPublicKeyResponse(public_key=sender.public_key)


@router.post("/push", response_model=NotificationResult)
def send_push(
    body: PushNotificationRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
    sender: PushSender = Depends(get_push_sender),
) -> NotificationResult:
    """Push to the given subscription, or to every subscription of the caller."""

    payload = {"title": body.title, "body": body.body, "data": body.data}

    if body.subscription is not None:
        sender.send(body.subscription.model_dump(), payload)
        return NotificationResult(channel=NotificationChannel.PUSH, delivered=1)

    subscriptions = push_repo.list_subscriptions(engine=engine, user_id=user.id)
    if not subscriptions:
        raise NotFoundError("No push subscriptions registered")

    delivered = 0
    for sub in subscriptions:
        try:
            sender.send(sub.as_subscription_info(), payload)
            delivered += 1
        except SubscriptionExpired:
            push_repo.delete_subscription(engine=engine, endpoint=sub.endpoint)
    return NotificationResult(channel=NotificationChannel.PUSH, delivered=delivered)


@router.post("/sms", response_model=NotificationResult)
def send_sms(
    body: SmsNotificationRequest,
    user: User = Depends(get_current_user),
    sender: SmsSender = Depends(get_sms_sender),
) -> NotificationResult:
    message_id = sender.send(to=body.to, message=body.message)
    return NotificationResult(channel=NotificationChannel.SMS, message_id=message_id)


@push_router.post("/subscribe", response_model=SuccessResponse, status_code=201)
def subscribe(
    body: PushSubscriptionRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> SuccessResponse:
    push_repo.upsert_subscription(
        engine=engine,
        user_id=user.id,
        endpoint=body.endpoint,
        p256dh=body.keys.p256dh,
        auth=body.keys.auth,
    )
    return SuccessResponse()


@push_router.delete("/subscribe", response_model=SuccessResponse)
def unsubscribe(
    body: PushUnsubscribeRequest,
    user: User = Depends(get_current_user),
    engine: Any = Depends(get_engine),
) -> SuccessResponse:
    if not push_repo.delete_subscription(engine=engine, endpoint=body.endpoint, user_id=user.id):
        raise NotFoundError("Subscription not found")
    return SuccessResponse()
