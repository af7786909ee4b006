from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from collateral_risk.domain.exceptions import BusinessValidationError
from collateral_risk.risk.parsing import PredictionParseError, parse_prediction
from collateral_risk.risk.prompt import build_risk_assessment_prompt
from collateral_risk.risk.schemas import VolatilityPrediction

logger = logging.getLogger("collateral_risk.risk_assessment")

AssessmentOutcome = Literal["model", "parse_fallback", "upstream_fallback"]

INVALID_BTC_AMOUNT = "Invalid BTC amount"
UPSTREAM_ERROR_MESSAGE = "AI service temporarily unavailable"

# Conservative static answers used when the model cannot be relied on.
PARSE_FALLBACK = VolatilityPrediction(
    is_risky=True,
    max_ltv=60,
    reason="Conservative estimate due to crypto volatility",
    volatility_score=70,
    confidence_level=80,
)
UPSTREAM_FALLBACK = VolatilityPrediction(
    is_risky=True,
    max_ltv=60,
    reason="Conservative fallback due to service error",
    volatility_score=70,
    confidence_level=50,
)


class LLMClient(Protocol):
    async def generate_text(self, *, prompt: str) -> str: ...


class RiskAssessmentUpstreamError(Exception):
    """Raised when the model could not be reached or answered with an error."""


@dataclass(frozen=True)
class RiskAssessment:
    # JSON object sent to the caller: the model's answer as parsed, or a fallback dump.
    prediction: dict[str, Any]
    outcome: AssessmentOutcome


def validate_btc_amount(btc_amount: float | None) -> float:
    """Return the amount if it is a positive finite number of satoshis."""

    if btc_amount is None or not math.isfinite(btc_amount) or btc_amount <= 0:
        raise BusinessValidationError(INVALID_BTC_AMOUNT, field="btcAmount")
    return btc_amount


class RiskAssessmentService:
    def __init__(self, *, llm_client: LLMClient):
        self._llm = llm_client

    async def assess(self, *, btc_amount: float | None) -> RiskAssessment:
        amount = validate_btc_amount(btc_amount)
        prompt = build_risk_assessment_prompt(btc_amount=amount)

        try:
            reply = await self._llm.generate_text(prompt=prompt)
        except Exception as exc:  # noqa: BLE001
            raise RiskAssessmentUpstreamError("LLM risk assessment failed") from exc

        try:
            prediction = parse_prediction(reply)
        except PredictionParseError:
            # Reply content stays out of logs; its size is enough to spot truncation.
            logger.warning(
                "Failed to parse model reply, using conservative fallback",
                extra={"outcome": "parse_fallback", "reply_chars": len(reply)},
            )
            return RiskAssessment(
                prediction=PARSE_FALLBACK.model_dump(by_alias=True), outcome="parse_fallback"
            )

        return RiskAssessment(prediction=prediction, outcome="model")
