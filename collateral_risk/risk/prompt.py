from __future__ import annotations

from decimal import Decimal

SATOSHIS_PER_BTC = Decimal(100_000_000)


def format_btc_amount(satoshis: float) -> str:
    """
    Render a satoshi amount as plain BTC without trailing zeros.

    150000000 -> "1.5", 0.4 -> "0.000000004". Decimal keeps sub-satoshi amounts
    from rounding to zero and never switches to exponent notation.
    """

    btc = (Decimal(str(satoshis)) / SATOSHIS_PER_BTC).normalize()
    return format(btc, "f")


def build_risk_assessment_prompt(*, btc_amount: float) -> str:
    """
    Create the single-turn prompt for a collateral risk assessment.

    The market context is fixed heuristic guidance; no market data is fetched. The
    model is asked for a bare JSON object, but callers must still cope with fenced or
    otherwise malformed replies.
    """

    return "\n".join(
        [
            f"Bitcoin lending risk assessment for {format_btc_amount(btc_amount)} BTC collateral:",
            "",
            "Current market context:",
            "- Bitcoin is a volatile cryptocurrency",
            "- Standard lending practices use 60-70% LTV for crypto collateral",
            "- Higher volatility = lower safe LTV",
            "",
            "Analyze and respond with valid JSON only:",
            "{",
            '  "isRisky": boolean (true if high volatility expected),',
            '  "maxLTV": number (40-70, recommended max loan-to-value %),',
            '  "reason": "brief explanation in 1 sentence",',
            '  "volatilityScore": number (1-100, higher = more volatile),',
            '  "confidenceLevel": number (1-100, confidence in prediction)',
            "}",
        ]
    )
