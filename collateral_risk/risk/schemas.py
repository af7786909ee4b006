from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RiskAssessmentRequest(BaseModel):
    btc_amount: float | None = Field(
        default=None,
        validation_alias=AliasChoices("btcAmount", "btc_amount"),
        description="Collateral amount in satoshis (1 BTC = 100,000,000 satoshis). Must be > 0.",
        examples=[150_000_000],
    )


class VolatilityPrediction(BaseModel):
    """
    Lending risk parameters estimated by the language model.

    Used as a strict shape check only: the model's JSON object is returned to the
    caller as parsed, so no value is coerced and ranges are not enforced. Extra
    keys are allowed.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", strict=True)

    is_risky: bool = Field(
        alias="isRisky",
        description="True if high volatility is expected.",
    )
    max_ltv: int | float = Field(
        alias="maxLTV",
        description="Recommended maximum loan-to-value percentage (intended range 40-70).",
        examples=[60],
    )
    reason: str = Field(description="Short explanation, one sentence.")
    volatility_score: int | float = Field(
        alias="volatilityScore",
        description="Expected volatility, higher is more volatile (intended range 1-100).",
        examples=[70],
    )
    confidence_level: int | float = Field(
        alias="confidenceLevel",
        description="Model confidence in the prediction (intended range 1-100).",
        examples=[80],
    )


class RiskAssessmentErrorOut(BaseModel):
    """Upstream failure payload; `fallback` is a conservative static answer."""

    error: str = Field(examples=["AI service temporarily unavailable"])
    fallback: VolatilityPrediction
