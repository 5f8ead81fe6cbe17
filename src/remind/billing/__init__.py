"""Stripe subscriptions: plans, checkout, and webhook handling."""

from remind.billing.plans import PLANS, Plan, get_plan, tier_for_plan
from remind.billing.stripe_client import BillingService, PlanSummary, SubscriptionSummary
from remind.billing.webhooks import handle_webhook_event

__all__ = [
    "PLANS",
    "BillingService",
    "Plan",
    "PlanSummary",
    "SubscriptionSummary",
    "get_plan",
    "handle_webhook_event",
    "tier_for_plan",
]
