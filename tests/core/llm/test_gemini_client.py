"""Unit tests for the Gemini REST client (no network; httpx.MockTransport)."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from collateral_risk.core.llm.deps import get_gemini_client
from collateral_risk.core.llm.gemini_client import (
    GeminiClient,
    GeminiConfig,
    GeminiUpstreamError,
)

_CONFIG = GeminiConfig(
    api_key="test-key",
    base_url="https://gemini.test/v1beta/",
    model="gemini-2.0-flash",
    timeout_seconds=5.0,
)


def _client(handler) -> GeminiClient:
    return GeminiClient(config=_CONFIG, transport=httpx.MockTransport(handler))


def _reply(*texts: str) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": t} for t in texts]}},
        ]
    }


def test_generate_text_posts_prompt_and_joins_parts() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_reply('{"isRisky": ', "true}"))

    text = asyncio.run(_client(handler).generate_text(prompt="assess 1 BTC"))

    assert text == '{"isRisky": true}'
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://gemini.test/v1beta/models/gemini-2.0-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "assess 1 BTC"


@pytest.mark.parametrize("status_code", [400, 403, 429, 500, 503])
def test_non_200_raises_upstream_error(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": {"message": "nope"}})

    with pytest.raises(GeminiUpstreamError):
        asyncio.run(_client(handler).generate_text(prompt="p"))


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
    ],
)
def test_reply_without_text_raises_upstream_error(payload: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(GeminiUpstreamError):
        asyncio.run(_client(handler).generate_text(prompt="p"))


def test_non_json_envelope_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>proxy error</html>")

    with pytest.raises(GeminiUpstreamError):
        asyncio.run(_client(handler).generate_text(prompt="p"))


@pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ReadTimeout])
def test_transport_errors_raise_upstream_error(exc_type: type[httpx.HTTPError]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)

    with pytest.raises(GeminiUpstreamError):
        asyncio.run(_client(handler).generate_text(prompt="p"))


def test_dependency_returns_none_without_api_key() -> None:
    assert get_gemini_client() is None


def test_dependency_builds_client_from_settings(gemini_api_key: str) -> None:
    client = get_gemini_client()
    assert isinstance(client, GeminiClient)
    assert client.model == "gemini-2.0-flash"
