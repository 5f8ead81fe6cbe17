"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from remind.auth import TokenService, hash_password
from remind.config import Settings
from remind.db import create_engine_from_url, ensure_core_schema
from remind.exceptions import ValidationError
from remind.notifications.templates import RenderedEmail, ReminderContent
from remind.repository import users as user_repo


class FakeEmailSender:
    """Records emails instead of talking to SMTP."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def send_rendered(self, *, to: str, email: RenderedEmail) -> str:
        self.sent.append({"to": to, "subject": email.subject, "html": email.html, "text": email.text})
        return f"<msg-{len(self.sent)}@test>"

    def send_reminder(self, *, to: str, content: ReminderContent) -> str:
        self.sent.append({"to": to, "subject": f"Reminder: {content.title}", "content": content})
        return f"<msg-{len(self.sent)}@test>"


class FakePushSender:
    def __init__(self, public_key: str | None = "test-public-key") -> None:
        self.public_key = public_key
        self.sent: list[tuple[dict[str, Any], dict[str, Any]]] = []
        self.fail_with: Exception | None = None

    def send(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> int:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((subscription_info, payload))
        return 201


class FakeSmsSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, *, to: str, message: str) -> str:
        self.sent.append((to, message))
        return f"sms-{len(self.sent)}"


class FakeBillingService:
    """Stands in for the Stripe client; webhook payloads are trusted JSON."""

    def __init__(self) -> None:
        self.checkouts: list[dict[str, Any]] = []
        self.cancelled: list[str] = []

    def create_checkout_session(self, **kwargs: Any) -> str:
        self.checkouts.append(kwargs)
        return "https://checkout.stripe.test/session/cs_test_1"

    def get_subscription(self, *, email: str) -> Any:
        return None

    def cancel_subscription(self, subscription_id: str) -> Any:
        from remind.billing.stripe_client import SubscriptionSummary

        self.cancelled.append(subscription_id)
        return SubscriptionSummary(
            id=subscription_id,
            status="active",
            cancel_at_period_end=True,
            current_period_start=None,
            current_period_end=None,
        )

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        import json

        if signature != "valid":
            raise ValidationError("Invalid signature")
        return json.loads(payload)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Provide isolated settings for testing."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'remind.sqlite3'}",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
        sync_db_path=tmp_path / "offline.sqlite3",
    )


@pytest.fixture
def engine(settings: Settings):
    """Provide a migrated SQLite engine in a temporary directory."""
    engine = create_engine_from_url(settings.database_url)
    ensure_core_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture
def sms_sender() -> FakeSmsSender:
    return FakeSmsSender()


@pytest.fixture
def billing() -> FakeBillingService:
    return FakeBillingService()


@pytest.fixture
def app(settings, engine, email_sender, push_sender, sms_sender, billing):
    from remind.api import create_app

    return create_app(
        settings,
        engine=engine,
        email=email_sender,
        push=push_sender,
        sms=sms_sender,
        billing=billing,
    )


@pytest.fixture
def client(app):
    """Provide a TestClient with the application lifespan running."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user(engine):
    """Provide a stored account with a known password."""
    return user_repo.create_user(
        engine=engine,
        name="Test User",
        email="test@example.com",
        password_hash=hash_password("password123", rounds=4),
        phone_number="+15550001111",
    )


@pytest.fixture
def auth_headers(settings, user) -> dict[str, str]:
    token = TokenService(settings).issue(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}
