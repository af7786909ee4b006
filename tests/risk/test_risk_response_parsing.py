"""Unit tests: model reply sanitizing and parsing."""

from __future__ import annotations

import pytest

from collateral_risk.risk.parsing import PredictionParseError, parse_prediction, strip_code_fences

_ANSWER_JSON = (
    '{"isRisky": true, "maxLTV": 55, "reason": "High recent swings.", '
    '"volatilityScore": 81, "confidenceLevel": 64}'
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (_ANSWER_JSON, _ANSWER_JSON),
        (f"  {_ANSWER_JSON}\n", _ANSWER_JSON),
        (f"```json\n{_ANSWER_JSON}\n```", _ANSWER_JSON),
        (f"```json{_ANSWER_JSON}```", _ANSWER_JSON),
        (f"```\n{_ANSWER_JSON}\n```", _ANSWER_JSON),
        (f"\n```json\n{_ANSWER_JSON}\n```\n", _ANSWER_JSON),
        # Opening fence without a closing one (truncated reply).
        (f"```json\n{_ANSWER_JSON}", _ANSWER_JSON),
    ],
)
def test_strip_code_fences(raw: str, expected: str) -> None:
    assert strip_code_fences(raw) == expected


def test_strip_code_fences_leaves_inner_fences_alone() -> None:
    text = "Here you go:\n```json\n{}\n```"
    assert strip_code_fences(text) == text


def test_parse_prediction_returns_the_parsed_object_untouched() -> None:
    prediction = parse_prediction(f"```json\n{_ANSWER_JSON}\n```")

    assert prediction == {
        "isRisky": True,
        "maxLTV": 55,
        "reason": "High recent swings.",
        "volatilityScore": 81,
        "confidenceLevel": 64,
    }
    # 55 == 55.0 in Python, so check the types explicitly.
    assert type(prediction["maxLTV"]) is int
    assert type(prediction["isRisky"]) is bool


def test_parse_prediction_keeps_floats_and_extra_keys() -> None:
    raw = _ANSWER_JSON.replace('"maxLTV": 55', '"maxLTV": 52.5')[:-1] + ', "horizonDays": 30}'
    prediction = parse_prediction(raw)

    assert prediction["maxLTV"] == 52.5
    assert prediction["horizonDays"] == 30


def _answer_with(**overrides: str) -> str:
    fields = {
        "isRisky": "true",
        "maxLTV": "55",
        "reason": '"x"',
        "volatilityScore": "1",
        "confidenceLevel": "1",
    }
    fields.update(overrides)
    return "{" + ", ".join(f'"{k}": {v}' for k, v in fields.items()) + "}"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "Here you go:\n```json\n{}\n```",
        "[1, 2, 3]",
        '"just a string"',
        '{"isRisky": true, "reason": "missing numbers"}',
        # Values that lax validation would coerce.
        _answer_with(isRisky='"perhaps"'),
        _answer_with(isRisky='"yes"'),
        _answer_with(isRisky="1"),
        _answer_with(maxLTV='"55"'),
        _answer_with(maxLTV="true"),
        _answer_with(reason="42"),
        # Not JSON even though Python's json module accepts them by default.
        _answer_with(maxLTV="NaN"),
        _answer_with(volatilityScore="Infinity"),
        _answer_with(confidenceLevel="-Infinity"),
        # Python-specific limits: int digit cap and recursion depth.
        _answer_with(maxLTV="9" * 5000),
        "[" * 100_000,
        '{"nested": ' + "[" * 100_000,
    ],
)
def test_parse_prediction_rejects_malformed_replies(raw: str) -> None:
    with pytest.raises(PredictionParseError):
        parse_prediction(raw)
