"""Unit tests for plans, the Stripe wrapper and webhook handling."""

from __future__ import annotations

from typing import Any

import pytest
import stripe

from remind.billing import PLANS, BillingService, get_plan, handle_webhook_event, tier_for_plan
from remind.config import Settings
from remind.exceptions import BillingError, ConfigurationError, ValidationError
from remind.models import SubscriptionStatus, SubscriptionTier
from remind.repository import users as user_repo


class TestPlans:
    """Test suite for the plan catalogue."""

    def test_known_plans(self) -> None:
        """Test prices and intervals of the published plans."""
        assert get_plan("pro-monthly").amount == 999
        assert get_plan("pro-yearly").interval == "year"
        assert get_plan("elite-yearly").tier == SubscriptionTier.ELITE
        assert set(PLANS) == {"pro-monthly", "pro-yearly", "elite-monthly", "elite-yearly"}

    def test_unknown_plan(self) -> None:
        """Test that unknown plan ids are a validation error."""
        with pytest.raises(ValidationError, match="Invalid plan ID"):
            get_plan("gold-monthly")

    def test_tier_for_plan(self) -> None:
        """Test tier mapping for plan ids."""
        assert tier_for_plan("elite-monthly") == SubscriptionTier.ELITE
        assert tier_for_plan("pro-yearly") == SubscriptionTier.PRO
        assert tier_for_plan(None) == SubscriptionTier.PRO


def _subscription(**overrides: Any) -> dict[str, Any]:
    sub = {
        "id": "sub_123",
        "status": "active",
        "cancel_at_period_end": False,
        "current_period_start": 1735689600,
        "current_period_end": 1738368000,
        "items": {
            "data": [
                {
                    "price": {
                        "id": "price_1",
                        "nickname": "Pro Plan (Monthly)",
                        "unit_amount": 999,
                        "recurring": {"interval": "month"},
                    }
                }
            ]
        },
    }
    sub.update(overrides)
    return sub


class TestBillingService:
    """Test suite for BillingService with the Stripe SDK patched out."""

    @pytest.fixture
    def service(self) -> BillingService:
        return BillingService(
            Settings(
                _env_file=None,
                stripe_secret_key="sk_test_123",
                stripe_webhook_secret="whsec_123",
                app_url="https://remind.test",
            )
        )

    def test_unconfigured_service_refuses(self) -> None:
        """Test that calls without a secret key fail fast."""
        service = BillingService(Settings(_env_file=None))

        assert service.configured is False
        with pytest.raises(ConfigurationError):
            service.create_checkout_session(plan_id="pro-monthly", user_id="u1", email="a@example.com")

    def test_create_checkout_session(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the checkout session parameters."""
        captured: dict[str, Any] = {}

        def fake_create(**kwargs: Any) -> dict[str, Any]:
            captured.update(kwargs)
            return {"id": "cs_1", "url": "https://checkout.stripe.com/c/cs_1"}

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

        url = service.create_checkout_session(plan_id="elite-yearly", user_id="u1", email="a@example.com")

        assert url == "https://checkout.stripe.com/c/cs_1"
        assert captured["api_key"] == "sk_test_123"
        assert captured["mode"] == "subscription"
        assert captured["line_items"][0]["price_data"]["unit_amount"] == 23999
        assert captured["metadata"] == {"userId": "u1", "planId": "elite-yearly", "userEmail": "a@example.com"}
        assert captured["subscription_data"]["metadata"]["planId"] == "elite-yearly"
        assert captured["success_url"] == "https://remind.test/dashboard?success=true"
        assert captured["cancel_url"] == "https://remind.test/pricing?canceled=true"

    def test_checkout_stripe_error_is_wrapped(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that SDK errors surface as BillingError."""

        def fake_create(**kwargs: Any) -> dict[str, Any]:
            raise stripe.StripeError("card network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

        with pytest.raises(BillingError):
            service.create_checkout_session(plan_id="pro-monthly", user_id="u1", email="a@example.com")

    def test_get_subscription(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the subscription lookup by customer email."""
        monkeypatch.setattr(stripe.Customer, "list", lambda **kw: {"data": [{"id": "cus_1"}]})
        monkeypatch.setattr(stripe.Subscription, "list", lambda **kw: {"data": [_subscription()]})

        summary = service.get_subscription(email="a@example.com")

        assert summary is not None
        assert summary.id == "sub_123"
        assert summary.plan.amount == 999
        assert summary.plan.interval == "month"
        assert summary.current_period_end.year == 2025

    def test_get_subscription_without_customer(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an email with no Stripe customer has no subscription."""
        monkeypatch.setattr(stripe.Customer, "list", lambda **kw: {"data": []})

        assert service.get_subscription(email="nobody@example.com") is None

    def test_period_falls_back_to_subscription_item(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test newer payloads that carry the period on the item."""
        sub = _subscription(current_period_start=None, current_period_end=None)
        sub["items"]["data"][0].update({"current_period_start": 1735689600, "current_period_end": 1738368000})
        monkeypatch.setattr(stripe.Subscription, "modify", lambda sid, **kw: sub)

        summary = service.cancel_subscription("sub_123")

        assert summary.current_period_end is not None

    def test_cancel_subscription(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test cancellation at period end."""
        captured: dict[str, Any] = {}

        def fake_modify(subscription_id: str, **kwargs: Any) -> dict[str, Any]:
            captured["id"] = subscription_id
            captured.update(kwargs)
            return _subscription(cancel_at_period_end=True)

        monkeypatch.setattr(stripe.Subscription, "modify", fake_modify)

        summary = service.cancel_subscription("sub_123")

        assert captured["id"] == "sub_123"
        assert captured["cancel_at_period_end"] is True
        assert summary.cancel_at_period_end is True

    def test_cancel_requires_id(self, service) -> None:
        """Test that an empty subscription id is rejected."""
        with pytest.raises(ValidationError):
            service.cancel_subscription("")

    def test_construct_event_rejects_bad_signature(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that signature failures are a validation error."""

        def fake_construct(payload: bytes, signature: str, secret: str) -> Any:
            raise stripe.SignatureVerificationError("No signatures found", signature)

        monkeypatch.setattr(stripe.Webhook, "construct_event", fake_construct)

        with pytest.raises(ValidationError, match="Invalid signature"):
            service.construct_event(b"{}", "t=1,v1=bad")
        with pytest.raises(ValidationError):
            service.construct_event(b"{}", None)

    def test_construct_event_returns_dict(self, service, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a verified event is returned as a plain dict."""
        monkeypatch.setattr(
            stripe.Webhook,
            "construct_event",
            lambda payload, signature, secret: {"type": "invoice.payment_succeeded", "data": {"object": {}}},
        )

        event = service.construct_event(b"{}", "t=1,v1=good")

        assert event["type"] == "invoice.payment_succeeded"


class TestWebhookHandling:
    """Test suite for handle_webhook_event."""

    def _event(self, event_type: str, obj: dict[str, Any]) -> dict[str, Any]:
        return {"type": event_type, "data": {"object": obj}}

    def test_checkout_completed_activates_tier(self, engine, user) -> None:
        """Test that a completed checkout upgrades the account."""
        event = self._event(
            "checkout.session.completed",
            {"id": "cs_1", "customer": "cus_9", "metadata": {"userId": user.id, "planId": "elite-monthly"}},
        )

        assert handle_webhook_event(engine, event) is True

        stored = user_repo.get_user(engine=engine, user_id=user.id)
        assert stored.subscription_tier == SubscriptionTier.ELITE
        assert stored.subscription_status == SubscriptionStatus.ACTIVE
        assert stored.stripe_customer_id == "cus_9"

    def test_subscription_updated_inactive(self, engine, user) -> None:
        """Test that a non-active subscription status deactivates the account tier."""
        event = self._event(
            "customer.subscription.updated",
            {"id": "sub_1", "status": "past_due", "metadata": {"userId": user.id, "planId": "pro-monthly"}},
        )

        handle_webhook_event(engine, event)

        stored = user_repo.get_user(engine=engine, user_id=user.id)
        assert stored.subscription_tier == SubscriptionTier.PRO
        assert stored.subscription_status == SubscriptionStatus.INACTIVE

    def test_subscription_deleted_downgrades(self, engine, user) -> None:
        """Test that a deleted subscription returns the account to free."""
        handle_webhook_event(
            engine,
            self._event(
                "checkout.session.completed",
                {"id": "cs_1", "metadata": {"userId": user.id, "planId": "pro-monthly"}},
            ),
        )

        handle_webhook_event(
            engine,
            self._event("customer.subscription.deleted", {"id": "sub_1", "metadata": {"userId": user.id}}),
        )

        stored = user_repo.get_user(engine=engine, user_id=user.id)
        assert stored.subscription_tier == SubscriptionTier.FREE
        assert stored.subscription_status == SubscriptionStatus.CANCELLED

    def test_missing_metadata_is_ignored(self, engine, user) -> None:
        """Test that events without a user id change nothing."""
        event = self._event("checkout.session.completed", {"id": "cs_1", "metadata": {}})

        assert handle_webhook_event(engine, event) is False
        assert user_repo.get_user(engine=engine, user_id=user.id).subscription_tier == SubscriptionTier.FREE

    def test_invoice_and_unknown_events_change_nothing(self, engine) -> None:
        """Test informational and unhandled event types."""
        assert handle_webhook_event(engine, self._event("invoice.payment_failed", {"subscription": "sub_1"})) is False
        assert handle_webhook_event(engine, self._event("charge.refunded", {})) is False
