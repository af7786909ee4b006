from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from collateral_risk.risk.schemas import VolatilityPrediction


class PredictionParseError(Exception):
    """Raised when a model reply cannot be read as a VolatilityPrediction."""


# Opening fence with an optional language tag, e.g. ```json
_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*")
_CLOSING_FENCE_RE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence from a model reply.

    Only a fence that opens the (trimmed) reply is considered; text without one is
    returned trimmed but otherwise untouched.
    """

    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPENING_FENCE_RE.sub("", cleaned, count=1)
    return _CLOSING_FENCE_RE.sub("", cleaned, count=1)


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are not JSON.
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_prediction(text: str) -> dict[str, Any]:
    """
    Return the model's JSON object exactly as parsed.

    The object is checked against VolatilityPrediction in strict mode, but the
    validated model is discarded so the caller gets the original values (no
    coercion, integers stay integers, extra keys kept).
    """

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        # ValueError covers JSONDecodeError, the int-digits limit and rejected constants.
        raise PredictionParseError("Model reply is not valid JSON") from exc

    if not isinstance(data, dict):
        raise PredictionParseError("Model reply JSON must be an object")

    try:
        VolatilityPrediction.model_validate(data)
    except ValidationError as exc:
        raise PredictionParseError("Model reply does not match the prediction shape") from exc

    return data
