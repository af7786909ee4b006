from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from collateral_risk.domain.exceptions import BusinessValidationError
from collateral_risk.risk.service import INVALID_BTC_AMOUNT

logger = logging.getLogger("collateral_risk.business_validation")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(BusinessValidationError)
    async def handle_business_validation_error(
        request: Request,
        exc: BusinessValidationError,
    ) -> JSONResponse:
        # Do not log request bodies or query values.
        logger.info(
            "Business validation failed",
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,  # no query string
                "status_code": 400,
                "field": exc.field,
            },
        )
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        # The only request body is `{btcAmount}`; anything unparseable is an invalid amount.
        logger.info(
            "Request validation failed",
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": 400,
            },
        )
        return JSONResponse(status_code=400, content={"error": INVALID_BTC_AMOUNT})
