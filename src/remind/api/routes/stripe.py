"""Stripe billing endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from remind.api.dependencies import get_billing, get_current_user, get_engine
from remind.api.models import (
    CancelSubscriptionRequest,
    CancelSubscriptionResponse,
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionInfo,
    SubscriptionResponse,
    WebhookResponse,
)
from remind.billing import BillingService, handle_webhook_event
from remind.models import User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/stripe", tags=["billing"])


@router.post("/create-checkout-session", response_model=CheckoutResponse)
def create_checkout_session(
    body: CheckoutRequest,
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
) -> CheckoutResponse:
    url = billing.create_checkout_session(
        plan_id=body.plan_id,
        user_id=user.id,
        email=user.email,
        success_url=body.success_url,
        cancel_url=body.cancel_url,
    )
    return CheckoutResponse(url=url)


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
) -> SubscriptionResponse:
    summary = billing.get_subscription(email=user.email)
    if summary is None:
        return SubscriptionResponse(message="No active subscription found")
    return SubscriptionResponse(subscription=SubscriptionInfo.model_validate(asdict(summary)))


@router.post("/cancel-subscription", response_model=CancelSubscriptionResponse)
def cancel_subscription(
    body: CancelSubscriptionRequest,
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
) -> CancelSubscriptionResponse:
    summary = billing.cancel_subscription(body.subscription_id)
    logger.info("subscription_cancel_requested", user_id=user.id, subscription_id=body.subscription_id)
    return CancelSubscriptionResponse(subscription=SubscriptionInfo.model_validate(asdict(summary)))


@router.post("/webhook", response_model=WebhookResponse)
async def webhook(
    request: Request,
    billing: BillingService = Depends(get_billing),
    engine: Any = Depends(get_engine),
) -> WebhookResponse:
    """Verify and apply a Stripe webhook. A bad signature is a 400."""

    payload = await request.body()
    event = billing.construct_event(payload, request.headers.get("stripe-signature"))
    handle_webhook_event(engine, event)
    return WebhookResponse()
