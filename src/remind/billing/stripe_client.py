"""Thin wrapper around the Stripe SDK.

The secret key is passed per call rather than assigned to ``stripe.api_key``
so that several services (and tests) can coexist in one process.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import stripe
import structlog

from remind.billing.plans import get_plan
from remind.config import Settings, get_settings
from remind.exceptions import BillingError, ConfigurationError, ValidationError

logger = structlog.get_logger()


@dataclass
class PlanSummary:
    id: str | None
    name: str
    amount: int
    interval: str


@dataclass
class SubscriptionSummary:
    id: str
    status: str
    cancel_at_period_end: bool
    current_period_start: datetime | None
    current_period_end: datetime | None
    plan: PlanSummary | None = None


def _as_dict(obj: Any) -> dict[str, Any]:
    return obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)


def _ts(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _summarize(subscription: Any) -> SubscriptionSummary:
    subscription = _as_dict(subscription)
    items = (subscription.get("items") or {}).get("data") or []
    first_item = items[0] if items else None

    plan = None
    if first_item is not None:
        price = first_item.get("price") or {}
        recurring = price.get("recurring") or {}
        plan = PlanSummary(
            id=price.get("id"),
            name=price.get("nickname") or "Pro Plan",
            amount=int(price.get("unit_amount") or 0),
            interval=recurring.get("interval") or "month",
        )

    # Newer API versions report the billing period on the subscription item.
    period_source = first_item if subscription.get("current_period_end") is None and first_item else subscription

    return SubscriptionSummary(
        id=subscription["id"],
        status=subscription["status"],
        cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        current_period_start=_ts(period_source.get("current_period_start")),
        current_period_end=_ts(period_source.get("current_period_end")),
        plan=plan,
    )


class BillingService:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.stripe_secret_key)

    def _api_key(self) -> str:
        if not self.settings.stripe_secret_key:
            raise ConfigurationError("Stripe is not configured")
        return self.settings.stripe_secret_key

    def create_checkout_session(
        self,
        *,
        plan_id: str,
        user_id: str,
        email: str,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> str:
        """Create a subscription checkout session.

        Returns:
            The hosted checkout URL.

        Raises:
            ValidationError: If the plan id is unknown.
            BillingError: If Stripe rejects the request.
        """

        plan = get_plan(plan_id)
        api_key = self._api_key()
        app_url = self.settings.app_url.rstrip("/")
        metadata = {"userId": user_id, "planId": plan.id, "userEmail": email}

        try:
            session = stripe.checkout.Session.create(
                api_key=api_key,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": "usd",
                            "product_data": {"name": plan.name, "description": plan.description},
                            "unit_amount": plan.amount,
                            "recurring": {"interval": plan.interval},
                        },
                        "quantity": 1,
                    }
                ],
                success_url=success_url or f"{app_url}/dashboard?success=true",
                cancel_url=cancel_url or f"{app_url}/pricing?canceled=true",
                customer_email=email,
                metadata=metadata,
                subscription_data={"metadata": metadata},
                allow_promotion_codes=True,
                billing_address_collection="auto",
            )
        except stripe.StripeError as e:
            logger.warning("stripe_checkout_failed", plan_id=plan.id, error=str(e))
            raise BillingError("Failed to create checkout session") from e

        logger.info("stripe_checkout_created", plan_id=plan.id, user_id=user_id, session_id=session["id"])
        return str(session["url"])

    def get_subscription(self, *, email: str) -> SubscriptionSummary | None:
        """Most recent subscription of the Stripe customer with this email, if any."""

        api_key = self._api_key()
        try:
            customers = _as_dict(stripe.Customer.list(api_key=api_key, email=email, limit=1))
            if not customers.get("data"):
                return None
            subscriptions = stripe.Subscription.list(
                api_key=api_key,
                customer=customers["data"][0]["id"],
                status="all",
                limit=1,
            )
        except stripe.StripeError as e:
            logger.warning("stripe_subscription_lookup_failed", error=str(e))
            raise BillingError("Failed to fetch subscription") from e

        subscriptions = _as_dict(subscriptions)
        if not subscriptions.get("data"):
            return None
        return _summarize(subscriptions["data"][0])

    def cancel_subscription(self, subscription_id: str) -> SubscriptionSummary:
        """Cancel at the end of the current billing period."""

        if not subscription_id:
            raise ValidationError("Subscription ID is required")
        api_key = self._api_key()
        try:
            subscription = stripe.Subscription.modify(
                subscription_id, api_key=api_key, cancel_at_period_end=True
            )
        except stripe.StripeError as e:
            logger.warning("stripe_cancel_failed", subscription_id=subscription_id, error=str(e))
            raise BillingError("Failed to cancel subscription") from e

        logger.info("stripe_subscription_cancelled", subscription_id=subscription_id)
        return _summarize(subscription)

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify a webhook payload against the signing secret.

        Raises:
            ConfigurationError: If no webhook secret is configured.
            ValidationError: If the signature is missing or invalid.
        """

        secret = self.settings.stripe_webhook_secret
        if not secret:
            raise ConfigurationError("Stripe webhook secret is not configured")
        if not signature:
            raise ValidationError("Invalid signature")
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("stripe_webhook_signature_invalid", error=str(e))
            raise ValidationError("Invalid signature") from e
        return _as_dict(event)
