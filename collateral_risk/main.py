from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from collateral_risk.api.exception_handlers import register_exception_handlers
from collateral_risk.api.schemas import HealthOut
from collateral_risk.core.logging import setup_logging
from collateral_risk.core.metrics import PrometheusMetricsMiddleware, metrics_router
from collateral_risk.core.middleware.http_logging import HttpLoggingMiddleware
from collateral_risk.core.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from collateral_risk.core.settings import get_settings
from collateral_risk.risk.router import router as risk_router

setup_logging()

logger = logging.getLogger("collateral_risk")


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Service started (gemini_configured=%s)", get_settings().gemini_configured)
        yield

    app = FastAPI(
        title="Collateral Risk API",
        description=(
            "Estimates lending risk parameters for Bitcoin collateral using a hosted language "
            "model.\n\n"
            "Design principles:\n"
            "- The volatility judgment is delegated to the model; this service does not model "
            "volatility itself.\n"
            "- Model failures degrade to conservative static answers instead of errors without "
            "data.\n"
            "- Nothing is persisted; prompts and model replies are not logged."
        ),
        lifespan=lifespan,
        docs_url="/swagger",
        redoc_url="/docs",
        openapi_tags=[
            {
                "name": "health",
                "description": "Basic uptime checks for load balancers and monitoring.",
            },
            {
                "name": "risk",
                "description": "Model-backed lending risk assessment for BTC collateral.",
            },
        ],
    )

    # Middleware added last runs first: logging, CORS, metrics, then rate limiting.
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter, path_prefix="/api/")
    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running.\n\n"
            "Reports whether a Gemini API key is configured but never calls the model, so it "
            "can be used safely for basic uptime checks."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(
            status="healthy",
            timestamp=datetime.now(UTC),
            gemini_configured=get_settings().gemini_configured,
        )

    app.include_router(metrics_router)
    app.include_router(risk_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on HOST:PORT."""

    settings = get_settings()
    logger.info("Starting HTTP server on %s:%s", settings.host, settings.port)
    # log_config=None keeps the JSON logging configured above.
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
