"""Email delivery over SMTP."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from remind.config import Settings, get_settings
from remind.exceptions import ConfigurationError, NotificationError
from remind.notifications.templates import (
    RenderedEmail,
    ReminderContent,
    render_password_reset_email,
    render_reminder_email,
    render_welcome_email,
)

logger = structlog.get_logger()


class EmailSender:
    """Sends multipart (text + HTML) emails through the configured SMTP server.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS when the
    server offers it.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def send(self, *, to: str, subject: str, html: str, text: str | None = None) -> str:
        """Send one email.

        Returns:
            The Message-ID of the sent email.

        Raises:
            ConfigurationError: If no SMTP host is configured.
            NotificationError: If the SMTP exchange fails.
        """

        if not self.configured:
            raise ConfigurationError("SMTP is not configured (REMIND_SMTP_HOST)")

        msg = EmailMessage()
        msg["From"] = self.settings.from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain=self.settings.from_email.split("@")[-1])
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")

        host = str(self.settings.smtp_host)
        port = self.settings.smtp_port
        try:
            if port == 465:
                smtp: smtplib.SMTP = smtplib.SMTP_SSL(host, port, timeout=30)
            else:
                smtp = smtplib.SMTP(host, port, timeout=30)
            with smtp:
                if port != 465:
                    smtp.ehlo()
                    if smtp.has_extn("starttls"):
                        smtp.starttls()
                        smtp.ehlo()
                if self.settings.smtp_user:
                    smtp.login(self.settings.smtp_user, self.settings.smtp_password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("email_send_failed", error=str(e))
            raise NotificationError("Failed to send email") from e

        logger.info("email_sent", subject=subject)
        return str(msg["Message-ID"])

    def send_rendered(self, *, to: str, email: RenderedEmail) -> str:
        return self.send(to=to, subject=email.subject, html=email.html, text=email.text)

    def send_reminder(self, *, to: str, content: ReminderContent) -> str:
        return self.send_rendered(
            to=to, email=render_reminder_email(content, app_url=self.settings.app_url)
        )

    def send_welcome(self, *, to: str, name: str) -> str:
        return self.send_rendered(to=to, email=render_welcome_email(name, app_url=self.settings.app_url))

    def send_password_reset(self, *, to: str, reset_token: str) -> str:
        return self.send_rendered(
            to=to, email=render_password_reset_email(reset_token, app_url=self.settings.app_url)
        )
