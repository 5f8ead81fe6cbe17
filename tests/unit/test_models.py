"""Unit tests for domain and API models."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pydantic
import pytest

from remind.api.models import EmailNotificationRequest, PreferencesUpdate, QuickAddRequest, RegisterRequest
from remind.models import EventCreate, LeadTime, ReminderUnit, User, VoiceTrigger, ensure_aware, resolve_timezone


class TestLeadTime:
    """Test suite for LeadTime."""

    def test_parse_plural_and_singular(self) -> None:
        """Test parsing "<value> <unit>" strings."""
        assert LeadTime.parse("2 hours") == LeadTime(value=2, unit=ReminderUnit.HOURS)
        assert LeadTime.parse("1 day") == LeadTime(value=1, unit=ReminderUnit.DAYS)

    def test_parse_rejects_garbage(self) -> None:
        """Test that malformed lead times raise ValueError."""
        with pytest.raises(ValueError):
            LeadTime.parse("soon")
        with pytest.raises(ValueError):
            LeadTime.parse("3 fortnights")

    def test_as_timedelta(self) -> None:
        """Test conversion to a timedelta."""
        assert LeadTime(value=30, unit=ReminderUnit.MINUTES).as_timedelta() == timedelta(minutes=30)
        assert LeadTime(value=2, unit=ReminderUnit.WEEKS).as_timedelta() == timedelta(weeks=2)


class TestEventCreate:
    """Test suite for EventCreate validation."""

    def test_naive_dates_become_utc(self) -> None:
        """Test that naive datetimes are treated as UTC."""
        event = EventCreate(title="Gym", start_date=datetime(2025, 1, 1, 9, 0))

        assert event.start_date.tzinfo == timezone.utc

    def test_end_before_start_is_rejected(self) -> None:
        """Test the date ordering rule."""
        start = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

        with pytest.raises(pydantic.ValidationError):
            EventCreate(title="Gym", start_date=start, end_date=start - timedelta(hours=1))

    def test_title_length(self) -> None:
        """Test that titles are limited to 200 characters."""
        with pytest.raises(pydantic.ValidationError):
            EventCreate(title="x" * 201, start_date=datetime.now(timezone.utc))


class TestUser:
    """Test suite for User."""

    def test_suspended_flag(self) -> None:
        """Test that suspension is derived from the subscription status."""
        now = datetime.now(timezone.utc)
        user = User(
            id="u1",
            name="A",
            email="a@example.com",
            subscription_status="suspended",
            created_at=now,
            updated_at=now,
        )

        assert user.is_suspended is True
        assert len(user.default_reminders) == 6

    def test_local_now_uses_account_timezone(self) -> None:
        """Test that the account clock follows its IANA zone."""
        now = datetime.now(timezone.utc)
        user = User(
            id="u1", name="A", email="a@example.com", timezone="Asia/Tokyo", created_at=now, updated_at=now
        )

        local = user.local_now()

        assert local.tzinfo == ZoneInfo("Asia/Tokyo")
        assert abs(local - now) < timedelta(minutes=1)

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        """Test that stored zones that no longer resolve use UTC."""
        assert resolve_timezone("Mars/Olympus_Mons") == timezone.utc
        assert resolve_timezone(None) == ZoneInfo("UTC")


class TestApiModels:
    """Test suite for request schemas."""

    def test_register_requires_valid_email_and_password(self) -> None:
        """Test registration field validation."""
        with pytest.raises(pydantic.ValidationError):
            RegisterRequest(name="A", email="not-an-email", password="password123")
        with pytest.raises(pydantic.ValidationError):
            RegisterRequest(name="A", email="a@example.com", password="short")

    def test_timezone_must_be_known(self) -> None:
        """Test that registration and preferences reject unknown zones."""
        with pytest.raises(pydantic.ValidationError, match="Unknown timezone"):
            RegisterRequest(name="A", email="a@example.com", password="password123", timezone="Nowhere/City")
        with pytest.raises(pydantic.ValidationError, match="Unknown timezone"):
            PreferencesUpdate(timezone="EST5EDT-ish")

        assert PreferencesUpdate(timezone="America/New_York").timezone == "America/New_York"
        assert PreferencesUpdate().timezone is None

    def test_preferences_accept_lead_time_strings(self) -> None:
        """Test that lead times may be sent as strings."""
        update = PreferencesUpdate(default_reminders=["3 days", {"value": 1, "unit": "hours"}])

        assert update.default_reminders == [
            LeadTime(value=3, unit=ReminderUnit.DAYS),
            LeadTime(value=1, unit=ReminderUnit.HOURS),
        ]
        assert update.model_fields_set == {"default_reminders"}

    def test_quick_add_title_is_stripped(self) -> None:
        """Test that blank titles are rejected and others trimmed."""
        assert QuickAddRequest(title="  Call mom  ").title == "Call mom"
        with pytest.raises(pydantic.ValidationError):
            QuickAddRequest(title="   ")

    def test_email_notification_defaults(self) -> None:
        """Test the email request defaults."""
        request = EmailNotificationRequest(to=" a@example.com ")

        assert request.to == "a@example.com"
        assert request.template == "custom"

    def test_voice_trigger_type(self) -> None:
        """Test that trigger types are restricted."""
        with pytest.raises(pydantic.ValidationError):
            VoiceTrigger(id="t", name="T", command="go", type="sometimes")

    def test_ensure_aware_leaves_aware_values(self) -> None:
        """Test that aware datetimes keep their offset."""
        value = datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_aware(value) is value
        assert ensure_aware(None) is None
