from __future__ import annotations

import time
from typing import cast

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

metrics_router = APIRouter(tags=["metrics"])

_HTTP_LABELS = ("method", "route", "status_code")

http_requests_total = Counter("http_requests_total", "Total HTTP requests", labelnames=_HTTP_LABELS)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=_HTTP_LABELS,
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

risk_assessments_total = Counter(
    "risk_assessments_total",
    "Risk assessments by outcome (model, parse_fallback, upstream_fallback)",
    labelnames=("outcome",),
)

# Time spent waiting on the model, dominated by the single Gemini call.
risk_assessment_duration_seconds = Histogram(
    "risk_assessment_duration_seconds",
    "Risk assessment duration (prompt, model call, parsing) in seconds",
    labelnames=("outcome",),
    buckets=(0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 15.0, 30.0),
)

rate_limited_requests_total = Counter(
    "rate_limited_requests_total",
    "Requests rejected with 429 by the per-IP rate limiter",
)


def route_label(request: Request) -> str:
    """
    Route template for labels and logs (e.g. /api/risk-assessment).

    Requests that never reached a route (404, or rejected by the rate limiter) get
    "unmatched" so raw paths never become label values.
    """

    path = getattr(request.scope.get("route"), "path", None)
    return path if isinstance(path, str) and path else "unmatched"


class PrometheusMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            labels = {
                "method": request.method,
                "route": route_label(request),
                "status_code": str(status_code),
            }
            http_requests_total.labels(**labels).inc()
            http_request_duration_seconds.labels(**labels).observe(time.perf_counter() - started)


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    # Default registry; counters are per process.
    return Response(content=cast(bytes, generate_latest()), media_type=CONTENT_TYPE_LATEST)
