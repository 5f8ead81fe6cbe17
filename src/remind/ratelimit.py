"""Fixed-window request rate limiting.

Counters live in this process's memory. They are not shared between worker
processes or hosts and are lost on restart, so the limits only hold for a
single-instance deployment; running several instances multiplies every
budget by the instance count.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from remind.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named budget of ``max_requests`` per ``window_seconds``."""

    name: str
    max_requests: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitInfo:
    allowed: bool
    limit: int
    remaining: int
    reset: float
    retry_after: int | None = None

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after or 60)
        return headers


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Counts requests per key inside fixed windows.

    The first request for a key opens a window of ``window_seconds``. Requests
    up to ``max_requests`` in that window are allowed and the next one is
    rejected. Once the window has elapsed the next request opens a new window
    with a count of one.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str, *, max_requests: int, window_seconds: float) -> RateLimitInfo:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                window = _Window(count=1, reset_at=now + window_seconds)
                self._windows[key] = window
                return RateLimitInfo(
                    allowed=True,
                    limit=max_requests,
                    remaining=max_requests - 1,
                    reset=window.reset_at,
                )

            if window.count >= max_requests:
                return RateLimitInfo(
                    allowed=False,
                    limit=max_requests,
                    remaining=0,
                    reset=window.reset_at,
                    retry_after=max(1, math.ceil(window.reset_at - now)),
                )

            window.count += 1
            return RateLimitInfo(
                allowed=True,
                limit=max_requests,
                remaining=max_requests - window.count,
                reset=window.reset_at,
            )

    def check_policy(self, policy: RateLimitPolicy, key: str) -> RateLimitInfo:
        info = self.check(
            f"{policy.name}:{key}",
            max_requests=policy.max_requests,
            window_seconds=policy.window_seconds,
        )
        if not info.allowed:
            logger.warning("rate_limit_exceeded", policy=policy.name, retry_after=info.retry_after)
        return info

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]


def policies_from_settings(settings: Settings) -> dict[str, RateLimitPolicy]:
    """Build the auth, api and quick_add presets from configuration."""

    return {
        "auth": RateLimitPolicy("auth", settings.auth_rate_limit, settings.auth_rate_window_seconds),
        "api": RateLimitPolicy("api", settings.api_rate_limit, settings.api_rate_window_seconds),
        "quick_add": RateLimitPolicy(
            "quick_add", settings.quick_add_rate_limit, settings.quick_add_rate_window_seconds
        ),
    }
