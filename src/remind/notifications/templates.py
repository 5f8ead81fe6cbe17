"""Message bodies for email and SMS notifications.

All user-supplied values are HTML-escaped before they reach an HTML body.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape

_WRAPPER_STYLE = "font-family: Arial, sans-serif; line-height: 1.6; color: #333;"
_BUTTON_STYLE = (
    "background: #3b82f6; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px;"
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class ReminderContent:
    """What a reminder notification says about its event."""

    title: str
    start: datetime
    description: str | None = None
    location: str | None = None
    category: str | None = None
    priority: str | None = None


def format_event_time(value: datetime) -> str:
    return value.strftime("%a %b %d, %Y %I:%M %p").replace(" 0", " ")


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        '<head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head>\n"
        f'<body style="{_WRAPPER_STYLE}">\n'
        f'<div style="max-width: 600px; margin: 0 auto; padding: 20px;">\n{body}\n'
        "<p>Best regards,<br>The RE:MIND Team</p>\n"
        "</div>\n</body>\n</html>\n"
    )


def render_reminder_email(content: ReminderContent, *, app_url: str) -> RenderedEmail:
    when = format_event_time(content.start)
    dashboard = f"{app_url.rstrip('/')}/dashboard"

    details = [f"<h2 style=\"margin-top: 0;\">{escape(content.title)}</h2>"]
    if content.description:
        details.append(f"<p><strong>Description:</strong> {escape(content.description)}</p>")
    if content.location:
        details.append(f"<p><strong>Location:</strong> {escape(content.location)}</p>")
    details.append(f"<p><strong>Time:</strong> {escape(when)}</p>")
    if content.category:
        details.append(f"<p><strong>Category:</strong> {escape(content.category)}</p>")
    if content.priority:
        details.append(f"<p><strong>Priority:</strong> {escape(content.priority)}</p>")

    body = (
        '<h1 style="color: #3b82f6;">\U0001f514 Reminder</h1>\n'
        '<div style="background: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">\n'
        + "\n".join(details)
        + "\n</div>\n"
        f'<div style="text-align: center; margin: 30px 0;"><a href="{escape(dashboard)}" '
        f'style="{_BUTTON_STYLE}">View in RE:MIND</a></div>'
    )

    text_lines = [f"Reminder: {content.title}", ""]
    if content.description:
        text_lines += [content.description, ""]
    if content.location:
        text_lines.append(f"Location: {content.location}")
    text_lines.append(f"Time: {when}")
    text_lines += ["", f"View at: {dashboard}"]

    return RenderedEmail(
        subject=f"\U0001f514 Reminder: {content.title}",
        html=_page(f"Reminder: {content.title}", body),
        text="\n".join(text_lines),
    )


def render_welcome_email(name: str, *, app_url: str) -> RenderedEmail:
    dashboard = f"{app_url.rstrip('/')}/dashboard"
    body = (
        f'<h1 style="color: #3b82f6;">Welcome to RE:MIND, {escape(name)}!</h1>\n'
        "<p>Thank you for joining RE:MIND, the reminder app that never lets you miss "
        "important moments.</p>\n"
        "<h2>Getting Started</h2>\n<ul>\n"
        "<li>Create your first reminder using voice or text</li>\n"
        "<li>Set up push notifications for instant alerts</li>\n"
        "<li>Explore smart categorization</li>\n</ul>\n"
        "<h2>Pro Tips</h2>\n<ul>\n"
        '<li>Use natural language: "Call mom tomorrow at 3pm"</li>\n'
        "<li>Set up recurring reminders for regular tasks</li>\n</ul>\n"
        f'<div style="text-align: center; margin: 30px 0;"><a href="{escape(dashboard)}" '
        f'style="{_BUTTON_STYLE}">Start Using RE:MIND</a></div>'
    )
    return RenderedEmail(
        subject="Welcome to RE:MIND! \U0001f680",
        html=_page("Welcome to RE:MIND", body),
        text=(
            f"Welcome to RE:MIND, {name}! Thank you for joining. "
            f"Visit {dashboard} to get started."
        ),
    )


def render_password_reset_email(reset_token: str, *, app_url: str) -> RenderedEmail:
    reset_url = f"{app_url.rstrip('/')}/auth/reset-password?token={reset_token}"
    body = (
        '<h1 style="color: #3b82f6;">\U0001f512 Password Reset Request</h1>\n'
        "<p>You requested a password reset for your RE:MIND account.</p>\n"
        f'<div style="text-align: center; margin: 30px 0;"><a href="{escape(reset_url)}" '
        f'style="{_BUTTON_STYLE}">Reset Password</a></div>\n'
        "<p>This link will expire in 1 hour for security reasons.</p>\n"
        "<p>If you didn't request this password reset, please ignore this email.</p>"
    )
    return RenderedEmail(
        subject="Password Reset - RE:MIND",
        html=_page("Password Reset - RE:MIND", body),
        text=(
            "Password Reset Request\n\n"
            f"Click this link to reset your password: {reset_url}\n\n"
            "This link expires in 1 hour."
        ),
    )


def format_reminder_sms(content: ReminderContent) -> str:
    location = f" at {content.location}" if content.location else ""
    return (
        f"RE:MIND: {content.title} - {format_event_time(content.start)}{location}. "
        "Don't forget! Reply STOP to opt out."
    )


def format_urgent_sms(content: ReminderContent) -> str:
    return f"\U0001f6a8 URGENT: {content.title} - {format_event_time(content.start)}. This is time-sensitive!"
