"""Web push delivery (VAPID) via pywebpush."""

from __future__ import annotations

import json
from typing import Any

import structlog
from pywebpush import WebPushException, webpush

from remind.config import Settings, get_settings
from remind.exceptions import ConfigurationError, NotificationError, SubscriptionExpired
from remind.notifications.templates import ReminderContent, format_event_time

logger = structlog.get_logger()


def reminder_push_payload(content: ReminderContent, *, event_id: str, reminder_id: str) -> dict[str, Any]:
    """Payload understood by the service worker's push handler."""

    body = format_event_time(content.start)
    if content.location:
        body += f" at {content.location}"
    return {
        "title": content.title,
        "body": body,
        "tag": f"reminder-{reminder_id}",
        "data": {"eventId": event_id, "reminderId": reminder_id, "url": "/dashboard"},
    }


class PushSender:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.vapid_private_key and self.settings.vapid_public_key)

    @property
    def public_key(self) -> str | None:
        return self.settings.vapid_public_key

    def send(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> int:
        """Deliver one push message.

        Returns:
            HTTP status code returned by the push service.

        Raises:
            ConfigurationError: If VAPID keys are missing.
            SubscriptionExpired: If the push service reports the endpoint gone (404/410).
            NotificationError: For any other delivery failure.
        """

        if not self.configured:
            raise ConfigurationError("VAPID keys are not configured")

        try:
            response = webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self.settings.vapid_private_key,
                vapid_claims={"sub": self.settings.vapid_subject},
            )
        except WebPushException as e:
            status = getattr(e.response, "status_code", None)
            if status in (404, 410):
                logger.info("push_subscription_expired", status=status)
                raise SubscriptionExpired("Push subscription is no longer valid") from e
            logger.warning("push_send_failed", status=status, error=str(e))
            raise NotificationError("Failed to send push notification") from e

        status_code = int(getattr(response, "status_code", 201))
        logger.info("push_sent", status=status_code)
        return status_code
