"""Account registration, login and the current-user endpoint."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from remind.api.dependencies import (
    get_app_settings,
    get_current_user,
    get_engine,
    get_token_service,
    rate_limit_by_ip,
)
from remind.api.models import AuthResponse, LoginRequest, RegisterRequest
from remind.auth import TokenService, hash_password, verify_password
from remind.config import Settings
from remind.exceptions import AuthenticationError, AuthorizationError
from remind.models import LeadTime, User
from remind.repository import users as user_repo

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(rate_limit_by_ip("auth"))],
)
def register(
    body: RegisterRequest,
    engine: Any = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    user = user_repo.create_user(
        engine=engine,
        name=body.name.strip(),
        email=body.email,
        password_hash=hash_password(body.password, rounds=settings.bcrypt_rounds),
        phone_number=body.phone_number,
        timezone=body.timezone or settings.default_timezone,
        language=body.language,
        default_reminders=[LeadTime.parse(raw) for raw in settings.default_reminders],
    )
    logger.info("user_registered", user_id=user.id)
    return AuthResponse(
        user=user,
        token=tokens.issue(user_id=user.id, email=user.email),
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(rate_limit_by_ip("auth"))])
def login(
    body: LoginRequest,
    engine: Any = Depends(get_engine),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    found = user_repo.get_credentials(engine=engine, email=body.email)
    if found is None or not verify_password(body.password, found[1]):
        logger.info("login_failed")
        raise AuthenticationError("Invalid email or password")

    user = found[0]
    if user.is_suspended:
        raise AuthorizationError("Account suspended")

    user_repo.touch_last_active(engine=engine, user_id=user.id)
    logger.info("user_logged_in", user_id=user.id)
    return AuthResponse(
        user=user,
        token=tokens.issue(user_id=user.id, email=user.email),
        message="Login successful",
    )


@router.get("/me", response_model=User)
def me(user: User = Depends(get_current_user)) -> User:
    return user
