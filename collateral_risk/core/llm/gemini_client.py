from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


class GeminiError(Exception):
    """Base error for Gemini client failures (safe to map to a fallback response)."""


class GeminiUpstreamError(GeminiError):
    """Raised when the Gemini API fails or returns an unexpected response."""


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float


class GeminiClient:
    """
    Minimal Gemini `generateContent` client returning the raw reply text.

    Design notes:
    - No logging in this module (prompts and replies stay out of logs).
    - One best-effort request per call; retries are left to the caller.
    - The reply is returned as text; JSON parsing belongs to the caller because models
      frequently wrap JSON in markdown fences.
    """

    def __init__(self, *, config: GeminiConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    @property
    def model(self) -> str:
        return self._config.model

    async def generate_text(self, *, prompt: str) -> str:
        url = f"{self._config.base_url.rstrip('/')}/models/{self._config.model}:generateContent"
        headers = {
            "x-goog-api-key": self._config.api_key,
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "contents": [
                {"role": "user", "parts": [{"text": prompt}]},
            ],
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise GeminiUpstreamError("LLM request timed out") from exc
        except httpx.HTTPError as exc:
            raise GeminiUpstreamError("LLM request failed") from exc

        if resp.status_code != 200:
            # Upstream error bodies may echo request details; keep them out of the message.
            raise GeminiUpstreamError(f"LLM service returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise GeminiUpstreamError("LLM response envelope was not valid JSON") from exc

        return _extract_text(data)


def _extract_text(data: Any) -> str:
    """Join the text parts of the first candidate."""

    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GeminiUpstreamError("LLM response contained no candidates") from exc

    if not isinstance(parts, list):
        raise GeminiUpstreamError("LLM response contained no text")

    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    if not texts:
        raise GeminiUpstreamError("LLM response contained no text")
    return "".join(texts)
