"""FastAPI dependencies.

Application-wide objects (engine, limiter, senders, ...) are created by
:func:`remind.api.app.create_app` and kept on ``app.state``; these providers
hand them to route handlers.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from remind.auth import TokenService
from remind.billing import BillingService
from remind.config import Settings
from remind.exceptions import AuthenticationError, AuthorizationError, RateLimitExceeded
from remind.models import User
from remind.nlp import CategoryClassifier
from remind.notifications import EmailSender, PushSender, SmsSender
from remind.ratelimit import FixedWindowRateLimiter, RateLimitPolicy
from remind.repository import users as user_repo

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> Any:
    return request.app.state.engine


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_classifier(request: Request) -> CategoryClassifier:
    return request.app.state.classifier


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email


def get_push_sender(request: Request) -> PushSender:
    return request.app.state.push


def get_sms_sender(request: Request) -> SmsSender:
    return request.app.state.sms


def get_billing(request: Request) -> BillingService:
    return request.app.state.billing


def get_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.limiter


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    engine: Any = Depends(get_engine),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """Resolve the bearer token to an active account.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or unknown user.
        AuthorizationError: The account is suspended.
    """

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    claims = tokens.verify(credentials.credentials)
    user = user_repo.get_user(engine=engine, user_id=claims.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if user.is_suspended:
        raise AuthorizationError("Account suspended")
    return user


def _enforce(limiter: FixedWindowRateLimiter, policy: RateLimitPolicy, key: str, response: Response) -> None:
    info = limiter.check_policy(policy, key)
    if not info.allowed:
        raise RateLimitExceeded("Too many requests. Please try again later.", headers=info.headers())
    response.headers.update(info.headers())


def rate_limit_by_ip(policy_name: str) -> Callable[..., None]:
    """Dependency enforcing a named policy per client address."""

    def dependency(
        request: Request,
        response: Response,
        limiter: FixedWindowRateLimiter = Depends(get_limiter),
    ) -> None:
        policy = request.app.state.rate_policies[policy_name]
        _enforce(limiter, policy, client_ip(request), response)

    return dependency


def rate_limit_by_user(policy_name: str) -> Callable[..., None]:
    """Dependency enforcing a named policy per authenticated account."""

    def dependency(
        request: Request,
        response: Response,
        user: User = Depends(get_current_user),
        limiter: FixedWindowRateLimiter = Depends(get_limiter),
    ) -> None:
        policy = request.app.state.rate_policies[policy_name]
        _enforce(limiter, policy, user.id, response)

    return dependency
