"""Notification channels (email, push, SMS) and due-reminder dispatch."""

from remind.notifications.dispatcher import DispatchReport, ReminderDispatcher
from remind.notifications.email import EmailSender
from remind.notifications.push import PushSender
from remind.notifications.sms import SmsSender

__all__ = ["DispatchReport", "EmailSender", "PushSender", "ReminderDispatcher", "SmsSender"]
