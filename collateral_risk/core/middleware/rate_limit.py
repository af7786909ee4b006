"""Per-client fixed-window rate limiting.

Counters live in process memory and are keyed by client IP. They are not shared
between worker processes.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from collateral_risk.core.metrics import rate_limited_requests_total

RATE_LIMIT_MESSAGE = "Too many requests from this IP"


@dataclass
class _Window:
    started: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after_seconds: float


class FixedWindowRateLimiter:
    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._last_prune = clock()

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for `key` and report whether it is within the limit."""

        now = self._clock()
        self._prune_expired(now=now)

        window = self._windows.get(key)
        if window is None or now - window.started >= self._window_seconds:
            window = _Window(started=now)
            self._windows[key] = window

        window.count += 1
        return RateLimitDecision(
            allowed=window.count <= self._max_requests,
            limit=self._max_requests,
            remaining=max(self._max_requests - window.count, 0),
            reset_after_seconds=max(self._window_seconds - (now - window.started), 0.0),
        )

    @property
    def tracked_clients(self) -> int:
        """Clients with a window in memory (expired ones stay until the next sweep)."""
        return len(self._windows)

    def _prune_expired(self, *, now: float) -> None:
        # At most one sweep per window length keeps hit() O(1) amortized.
        if now - self._last_prune < self._window_seconds:
            return
        self._last_prune = now
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started >= self._window_seconds
        ]
        for key in expired:
            del self._windows[key]


def _client_key(*, request: Request) -> str:
    client = request.client
    if client is None or not client.host:
        return "unknown"
    return client.host


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply `limiter` to every request whose path starts with `path_prefix`."""

    def __init__(self, app: ASGIApp, *, limiter: FixedWindowRateLimiter, path_prefix: str = "/api/"):
        super().__init__(app)
        self._limiter = limiter
        self._path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self._path_prefix):
            return await call_next(request)

        decision = self._limiter.hit(_client_key(request=request))
        if not decision.allowed:
            rate_limited_requests_total.inc()
            return PlainTextResponse(
                RATE_LIMIT_MESSAGE,
                status_code=429,
                headers={
                    "Retry-After": str(math.ceil(decision.reset_after_seconds)),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
