"""Apply Stripe webhook events to account subscription state.

Handlers take the decoded event dict so they can be exercised without a
signature. Events missing the ``userId`` metadata are logged and ignored.
"""

from __future__ import annotations

from typing import Any

import structlog

from remind.billing.plans import tier_for_plan
from remind.models import SubscriptionStatus, SubscriptionTier
from remind.repository import users as user_repo

logger = structlog.get_logger()


def _object(event: dict[str, Any]) -> dict[str, Any]:
    return (event.get("data") or {}).get("object") or {}


def _activate(engine: Any, obj: dict[str, Any], *, event_type: str) -> bool:
    metadata = obj.get("metadata") or {}
    user_id = metadata.get("userId")
    plan_id = metadata.get("planId")
    if not user_id or not plan_id:
        logger.warning("stripe_webhook_missing_metadata", event_type=event_type, object_id=obj.get("id"))
        return False

    return user_repo.update_subscription(
        engine=engine,
        user_id=user_id,
        tier=tier_for_plan(plan_id),
        status=SubscriptionStatus.ACTIVE,
        stripe_customer_id=obj.get("customer") if isinstance(obj.get("customer"), str) else None,
    )


def _updated(engine: Any, obj: dict[str, Any], *, event_type: str) -> bool:
    metadata = obj.get("metadata") or {}
    user_id = metadata.get("userId")
    plan_id = metadata.get("planId")
    if not user_id or not plan_id:
        logger.warning("stripe_webhook_missing_metadata", event_type=event_type, object_id=obj.get("id"))
        return False

    status = SubscriptionStatus.ACTIVE if obj.get("status") == "active" else SubscriptionStatus.INACTIVE
    return user_repo.update_subscription(
        engine=engine, user_id=user_id, tier=tier_for_plan(plan_id), status=status
    )


def _deleted(engine: Any, obj: dict[str, Any], *, event_type: str) -> bool:
    user_id = (obj.get("metadata") or {}).get("userId")
    if not user_id:
        logger.warning("stripe_webhook_missing_metadata", event_type=event_type, object_id=obj.get("id"))
        return False

    return user_repo.update_subscription(
        engine=engine,
        user_id=user_id,
        tier=SubscriptionTier.FREE,
        status=SubscriptionStatus.CANCELLED,
    )


def _invoice(engine: Any, obj: dict[str, Any], *, event_type: str) -> bool:
    outcome = "succeeded" if event_type.endswith("succeeded") else "failed"
    logger.info("stripe_invoice_payment", outcome=outcome, subscription_id=obj.get("subscription"))
    return False


_HANDLERS = {
    "checkout.session.completed": _activate,
    "customer.subscription.created": _activate,
    "customer.subscription.updated": _updated,
    "customer.subscription.deleted": _deleted,
    "invoice.payment_succeeded": _invoice,
    "invoice.payment_failed": _invoice,
}


def handle_webhook_event(engine: Any, event: dict[str, Any]) -> bool:
    """Dispatch one verified webhook event.

    Returns:
        True when an account was updated.
    """

    event_type = str(event.get("type") or "")
    handler = _HANDLERS.get(event_type)
    if handler is None:
        logger.info("stripe_webhook_unhandled", event_type=event_type)
        return False

    updated = handler(engine, _object(event), event_type=event_type)
    logger.info("stripe_webhook_handled", event_type=event_type, updated=updated)
    return updated
