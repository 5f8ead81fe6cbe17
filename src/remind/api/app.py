"""FastAPI application factory.

Everything with state (database engine, rate limiter, category cache, token
service, notification senders, billing client) is built here once per app and
stored on ``app.state``. Tests pass their own engine and fakes.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from remind import __version__
from remind.api.dependencies import rate_limit_by_ip
from remind.api.routes import auth, events, health, notifications, preferences, pwa, reminders, stripe, tasks, voice
from remind.auth import TokenService
from remind.billing import BillingService
from remind.config import Settings, get_settings
from remind.db import create_engine_from_settings, ensure_core_schema
from remind.exceptions import RateLimitExceeded, RemindError
from remind.logs import configure_logging
from remind.nlp import CategoryClassifier
from remind.notifications import EmailSender, PushSender, SmsSender
from remind.ratelimit import FixedWindowRateLimiter, policies_from_settings

logger = structlog.get_logger()


def _error_body(message: str, status_code: int) -> dict[str, Any]:
    return {
        "error": message,
        "status_code": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RemindError)
    async def _remind_error(request: Request, exc: RemindError) -> JSONResponse:
        headers = exc.headers if isinstance(exc, RateLimitExceeded) else None
        if exc.status_code >= 500:
            logger.warning("request_failed", path=request.url.path, status=exc.status_code, error=str(exc))
        return JSONResponse(_error_body(str(exc), exc.status_code), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(_error_body(_describe_validation(exc), 400), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            _error_body(str(exc.detail), exc.status_code),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(_error_body("Internal server error", 500), status_code=500)


def create_app(
    settings: Settings | None = None,
    *,
    engine: Any = None,
    limiter: FixedWindowRateLimiter | None = None,
    billing: BillingService | None = None,
    email: EmailSender | None = None,
    push: PushSender | None = None,
    sms: SmsSender | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Configuration; defaults to the environment.
        engine: SQLAlchemy engine; defaults to one built from ``settings``.
        limiter: Rate limiter shared by all routes of this app.
        billing: Stripe client.
        email: Email sender.
        push: Web push sender.
        sms: SMS sender.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    engine = engine if engine is not None else create_engine_from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_core_schema(engine)
        logger.info("api_started", version=__version__)
        yield
        logger.info("api_stopped")

    app = FastAPI(title="RE:MIND API", version=__version__, debug=settings.debug, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.started_at = time.monotonic()
    app.state.limiter = limiter or FixedWindowRateLimiter()
    app.state.rate_policies = policies_from_settings(settings)
    app.state.classifier = CategoryClassifier(cache_size=settings.category_cache_size)
    app.state.tokens = TokenService(settings)
    app.state.billing = billing or BillingService(settings)
    app.state.email = email or EmailSender(settings)
    app.state.push = push or PushSender(settings)
    app.state.sms = sms or SmsSender(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "X-Processing-Time"],
    )
    _install_error_handlers(app)

    api_limit = [Depends(rate_limit_by_ip("api"))]
    for router in (
        auth.router,
        preferences.router,
        events.router,
        reminders.router,
        tasks.router,
        voice.router,
        notifications.router,
        notifications.push_router,
        stripe.router,
    ):
        app.include_router(router, dependencies=api_limit)
    app.include_router(health.router)
    app.include_router(pwa.router)

    return app
