"""Access logging and request-id propagation.

One record per request with metadata only: route template, status, duration, the
risk-assessment outcome set by the route and the client's remaining rate-limit
budget. Bodies, query strings and headers are not logged.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from collateral_risk.core.metrics import route_label

logger = logging.getLogger("collateral_risk.http")

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def resolve_request_id(request: Request) -> str:
    """Propagate a well-formed client id, otherwise mint a UUID4 hex (log injection guard)."""

    candidate = request.headers.get(REQUEST_ID_HEADER)
    if candidate and _SAFE_REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


def _access_fields(
    request: Request, *, status_code: int, started: float, response: Response | None = None
) -> dict[str, Any]:
    remaining = response.headers.get("X-RateLimit-Remaining") if response is not None else None
    return {
        "request_id": request.state.request_id,
        "http_method": request.method,
        "request_path": route_label(request),
        "status_code": status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "outcome": getattr(request.state, "risk_outcome", None),
        "rate_limit_remaining": int(remaining) if remaining is not None else None,
    }


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        # Routes read it back from request.state for their own log lines.
        request.state.request_id = resolve_request_id(request)

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001 - logged with stack trace, then re-raised
            logger.exception(
                "Unhandled exception while processing request",
                extra=_access_fields(request, status_code=500, started=started),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        level = logging.WARNING if response.status_code == 429 else logging.INFO
        logger.log(
            level,
            "Request completed",
            extra=_access_fields(
                request, status_code=response.status_code, started=started, response=response
            ),
        )
        return response
