"""Health endpoint."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from remind import __version__
from remind.api.dependencies import get_engine
from remind.api.models import HealthResponse, ServiceHealth
from remind.db import check_connection

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["health"])


def _check_database(engine: Any) -> ServiceHealth:
    started = time.perf_counter()
    try:
        check_connection(engine)
    except Exception as e:  # noqa: BLE001
        logger.warning("health_database_unavailable", error=str(e))
        return ServiceHealth(status="unhealthy", error=str(e))
    return ServiceHealth(status="healthy", response_time_ms=round((time.perf_counter() - started) * 1000, 2))


@router.get("/health", response_model=HealthResponse)
def health(request: Request, engine: Any = Depends(get_engine)) -> JSONResponse:
    services = {"database": _check_database(engine)}
    healthy = all(s.status == "healthy" for s in services.values())
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        services=services,
    )
    return JSONResponse(body.model_dump(mode="json"), status_code=200 if healthy else 503)
