"""SMS delivery through the Twilio REST API.

When Twilio credentials are not configured, messages are only logged and a
synthetic ``sms-<millis>`` id is returned, which keeps local development and
tests free of a real SMS account.
"""

from __future__ import annotations

import base64
import json
import time
import urllib.error
import urllib.parse
import urllib.request

import structlog

from remind.config import Settings, get_settings
from remind.exceptions import NotificationError

logger = structlog.get_logger()


class SmsSender:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        s = self.settings
        return bool(s.twilio_account_sid and s.twilio_auth_token and s.twilio_from_number)

    def send(self, *, to: str, message: str) -> str:
        """Send a text message.

        Returns:
            The provider message SID (or a simulated id when unconfigured).

        Raises:
            NotificationError: If the provider rejects the message or is unreachable.
        """

        if not self.configured:
            message_id = f"sms-{int(time.time() * 1000)}"
            logger.info("sms_simulated", message_id=message_id, length=len(message))
            return message_id

        s = self.settings
        url = f"{s.twilio_api_base.rstrip('/')}/Accounts/{s.twilio_account_sid}/Messages.json"
        payload = urllib.parse.urlencode(
            {"To": to, "From": s.twilio_from_number, "Body": message}
        ).encode("utf-8")
        credentials = base64.b64encode(
            f"{s.twilio_account_sid}:{s.twilio_auth_token}".encode("utf-8")
        ).decode("ascii")
        req = urllib.request.Request(
            url=url,
            data=payload,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Basic {credentials}",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=s.sms_timeout_seconds) as resp:  # noqa: S310
                data = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            logger.warning("sms_send_failed", status=e.code)
            raise NotificationError(f"SMS provider rejected the message ({e.code})") from e
        except (urllib.error.URLError, OSError) as e:
            logger.warning("sms_send_failed", error=str(e))
            raise NotificationError("SMS provider unreachable") from e

        sid = str(data.get("sid") or "")
        logger.info("sms_sent", message_id=sid)
        return sid
