from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from collateral_risk.api.schemas import ErrorOut
from collateral_risk.core.llm.deps import get_gemini_client
from collateral_risk.core.metrics import risk_assessment_duration_seconds, risk_assessments_total
from collateral_risk.risk.schemas import (
    RiskAssessmentErrorOut,
    RiskAssessmentRequest,
    VolatilityPrediction,
)
from collateral_risk.risk.service import (
    UPSTREAM_ERROR_MESSAGE,
    UPSTREAM_FALLBACK,
    RiskAssessmentService,
    RiskAssessmentUpstreamError,
    validate_btc_amount,
)

router = APIRouter(prefix="/api", tags=["risk"])
logger = logging.getLogger("collateral_risk.risk_assessment")


def _upstream_fallback_response(*, request: Request) -> JSONResponse:
    risk_assessments_total.labels(outcome="upstream_fallback").inc()
    request.state.risk_outcome = "upstream_fallback"
    payload = RiskAssessmentErrorOut(error=UPSTREAM_ERROR_MESSAGE, fallback=UPSTREAM_FALLBACK)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=payload.model_dump(mode="json", by_alias=True),
    )


@router.post(
    "/risk-assessment",
    response_model=VolatilityPrediction,
    summary="Assess Bitcoin collateral lending risk",
    description=(
        "Ask the language model for lending risk parameters for the given collateral amount "
        "(in satoshis).\n\n"
        "- A malformed model reply is replaced with a conservative static estimate (200).\n"
        "- An upstream failure returns 500 with a conservative `fallback` object.\n"
        "- Numeric ranges in the model's answer are not validated."
    ),
    responses={
        400: {"model": ErrorOut, "description": "Missing or non-positive `btcAmount`."},
        429: {"description": "Rate limit exceeded for this client IP."},
        500: {"model": RiskAssessmentErrorOut, "description": "Upstream model failure."},
    },
)
async def create_risk_assessment(
    request: Request,
    payload: RiskAssessmentRequest | None = Body(default=None),
    gemini_client=Depends(get_gemini_client),
) -> JSONResponse:
    """
    Non-persistent, single best-effort model call.

    We do not log prompts or model replies.
    """

    # Bad input is a 400 even when the LLM is not configured.
    btc_amount = validate_btc_amount(payload.btc_amount if payload is not None else None)
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")

    if gemini_client is None:
        logger.error(
            "Risk assessment failed (LLM not configured)",
            extra={"request_id": request_id, "outcome": "upstream_fallback"},
        )
        return _upstream_fallback_response(request=request)

    svc = RiskAssessmentService(llm_client=gemini_client)
    started = time.perf_counter()
    try:
        assessment = await svc.assess(btc_amount=btc_amount)
    except RiskAssessmentUpstreamError:
        risk_assessment_duration_seconds.labels(outcome="upstream_fallback").observe(
            time.perf_counter() - started
        )
        logger.exception(
            "Risk assessment failed (LLM error)",
            extra={"request_id": request_id, "outcome": "upstream_fallback"},
        )
        return _upstream_fallback_response(request=request)

    risk_assessment_duration_seconds.labels(outcome=assessment.outcome).observe(
        time.perf_counter() - started
    )
    risk_assessments_total.labels(outcome=assessment.outcome).inc()
    request.state.risk_outcome = assessment.outcome
    logger.info(
        "Risk assessment completed",
        extra={"request_id": request_id, "outcome": assessment.outcome},
    )
    # The parsed object goes out as-is; re-serializing through the model would coerce values.
    return JSONResponse(content=assessment.prediction)
