"""
In-memory fixed-window rate limiting keyed by client IP.

Counters live in this process only. Behind several instances each one keeps
its own table, so the effective aggregate limit is approximate.
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request, Response

from leadcapture.core.exceptions import RateLimitError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.security.client_ip import resolve_client_ip

logger = get_structlog_logger(__name__)

GENERAL_LIMITER = "general"
STRICT_LIMITER = "strict"


@dataclass
class RateLimitWindow:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int

    def headers(self) -> Dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


class FixedWindowRateLimiter:
    """Fixed-window counter per key.

    A key's window opens on its first hit and closes ``window_seconds`` later;
    the next hit after that starts a fresh window.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 10_000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.max_keys = max_keys
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether it is allowed."""
        with self._lock:
            now = self.clock()
            window = self._windows.get(key)

            if window is None or now - window.window_start >= self.window_seconds:
                if window is None and len(self._windows) >= self.max_keys:
                    self._sweep(now)
                window = RateLimitWindow(count=0, window_start=now)
                self._windows[key] = window

            window.count += 1
            count = window.count
            reset_after = math.ceil(window.window_start + self.window_seconds - now)

        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=max(0, reset_after),
        )

    def _sweep(self, now: float) -> None:
        expired = [
            key for key, window in self._windows.items()
            if now - window.window_start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RateLimit:
    """Route dependency enforcing one of the limiters on ``app.state``."""

    def __init__(self, limiter_name: str, message: str, event_detail: Optional[str] = None):
        self.limiter_name = limiter_name
        self.message = message
        self.event_detail = event_detail

    async def __call__(self, request: Request, response: Response) -> None:
        # Preflight requests never consume quota.
        if request.method == "OPTIONS":
            return

        limiter: FixedWindowRateLimiter = request.app.state.rate_limiters[self.limiter_name]
        client_ip = resolve_client_ip(request)
        decision = limiter.hit(client_ip)

        if not decision.allowed:
            logger.warning(
                "rate_limit.exceeded",
                limiter=self.limiter_name,
                path=request.url.path,
                method=request.method,
                retry_after=decision.reset_after,
            )
            headers = decision.headers()
            headers["Retry-After"] = str(decision.reset_after)
            raise RateLimitError(
                message=self.message,
                retry_after=decision.reset_after,
                headers=headers,
                event_detail=self.event_detail,
            )

        response.headers.update(decision.headers())


general_rate_limit = RateLimit(
    GENERAL_LIMITER,
    message="Demasiadas solicitudes. Intenta más tarde.",
)

# Reserved for sensitive endpoints.
strict_rate_limit = RateLimit(
    STRICT_LIMITER,
    message="Demasiados intentos. Intenta de nuevo en 15 minutos.",
    event_detail="Strict rate limit exceeded",
)


def build_rate_limiters(settings, clock: Callable[[], float] = time.monotonic) -> Dict[str, FixedWindowRateLimiter]:
    return {
        GENERAL_LIMITER: FixedWindowRateLimiter(
            settings.rate_limit_requests, settings.rate_limit_period, clock=clock
        ),
        STRICT_LIMITER: FixedWindowRateLimiter(
            settings.strict_rate_limit_requests, settings.strict_rate_limit_period, clock=clock
        ),
    }
