"""Subscription plans offered through Stripe Checkout.

Prices are USD cents. A plan id carries its tier and billing interval
(``pro-monthly``, ``elite-yearly``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass

from remind.exceptions import ValidationError
from remind.models import SubscriptionTier


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    description: str
    amount: int
    interval: str

    @property
    def tier(self) -> SubscriptionTier:
        return tier_for_plan(self.id)


PLANS: dict[str, Plan] = {
    "pro-monthly": Plan(
        id="pro-monthly",
        name="Pro Plan (Monthly)",
        description="Unlimited events, advanced features, priority support",
        amount=999,
        interval="month",
    ),
    "pro-yearly": Plan(
        id="pro-yearly",
        name="Pro Plan (Yearly)",
        description="Unlimited events, advanced features, priority support - Save 20%!",
        amount=9599,
        interval="year",
    ),
    "elite-monthly": Plan(
        id="elite-monthly",
        name="Elite Plan (Monthly)",
        description="Everything in Pro plus team collaboration and API access",
        amount=2499,
        interval="month",
    ),
    "elite-yearly": Plan(
        id="elite-yearly",
        name="Elite Plan (Yearly)",
        description="Everything in Pro plus team collaboration and API access - Save 20%!",
        amount=23999,
        interval="year",
    ),
}


def get_plan(plan_id: str) -> Plan:
    try:
        return PLANS[plan_id]
    except KeyError:
        raise ValidationError(f"Invalid plan ID: {plan_id}") from None


def tier_for_plan(plan_id: str | None) -> SubscriptionTier:
    """Elite plan ids map to the elite tier; anything else is pro."""

    if plan_id and "elite" in plan_id:
        return SubscriptionTier.ELITE
    return SubscriptionTier.PRO
