"""Delivery of due reminders over each reminder's notification channels.

There is no retry queue. A channel failure is logged and not retried. Every
due reminder is attempted exactly once: it is marked sent either way, and one
that no channel delivered also gets ``delivery_failed`` set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from remind.exceptions import RemindError, SubscriptionExpired
from remind.models import NotificationChannel, Priority, resolve_timezone
from remind.notifications.email import EmailSender
from remind.notifications.push import PushSender, reminder_push_payload
from remind.notifications.sms import SmsSender
from remind.notifications.templates import ReminderContent, format_reminder_sms, format_urgent_sms
from remind.repository import push_subscriptions as push_repo
from remind.repository import reminders as reminder_repo

logger = structlog.get_logger()


@dataclass
class DispatchReport:
    due: int = 0
    sent: int = 0
    failed: int = 0
    channel_failures: list[str] = field(default_factory=list)


class ReminderDispatcher:
    """Sends every due, unsent reminder once and records the outcome."""

    def __init__(
        self,
        *,
        engine: Any,
        email: EmailSender,
        push: PushSender,
        sms: SmsSender,
    ) -> None:
        self._engine = engine
        self._email = email
        self._push = push
        self._sms = sms

    def dispatch_due(self, *, now: datetime | None = None, limit: int = 500) -> DispatchReport:
        now = now or datetime.now(timezone.utc)
        report = DispatchReport()

        for row in reminder_repo.list_due_reminders(engine=self._engine, now=now, limit=limit):
            report.due += 1
            content = ReminderContent(
                title=row["title"],
                start=row["start_date"].astimezone(resolve_timezone(row.get("timezone"))),
                description=row.get("description"),
                location=row.get("location"),
                category=row.get("category"),
                priority=row.get("priority"),
            )

            delivered = False
            for channel in row["channels"]:
                try:
                    delivered = self._deliver(channel, row, content) or delivered
                except RemindError as e:
                    report.channel_failures.append(f"{row['reminder_id']}:{channel.value}")
                    logger.warning(
                        "reminder_channel_failed",
                        reminder_id=row["reminder_id"],
                        channel=channel.value,
                        error=str(e),
                    )

            reminder_repo.mark_sent(
                engine=self._engine,
                reminder_id=row["reminder_id"],
                sent_at=now,
                delivery_failed=not delivered,
            )
            if delivered:
                report.sent += 1
            else:
                report.failed += 1
                logger.warning("reminder_undelivered", reminder_id=row["reminder_id"])

        logger.info("reminders_dispatched", due=report.due, sent=report.sent, failed=report.failed)
        return report

    def _deliver(self, channel: NotificationChannel, row: dict[str, Any], content: ReminderContent) -> bool:
        if channel == NotificationChannel.EMAIL:
            if not row.get("email"):
                return False
            self._email.send_reminder(to=row["email"], content=content)
            return True

        if channel == NotificationChannel.SMS:
            if not row.get("phone_number"):
                return False
            if row.get("priority") == Priority.URGENT.value:
                message = format_urgent_sms(content)
            else:
                message = format_reminder_sms(content)
            self._sms.send(to=row["phone_number"], message=message)
            return True

        if channel == NotificationChannel.PUSH:
            payload = reminder_push_payload(
                content, event_id=row["event_id"], reminder_id=row["reminder_id"]
            )
            sent_any = False
            for sub in push_repo.list_subscriptions(engine=self._engine, user_id=row["user_id"]):
                try:
                    self._push.send(sub.as_subscription_info(), payload)
                    sent_any = True
                except SubscriptionExpired:
                    push_repo.delete_subscription(engine=self._engine, endpoint=sub.endpoint)
            return sent_any

        return False
