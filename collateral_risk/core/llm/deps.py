from __future__ import annotations

from collateral_risk.core.llm.gemini_client import GeminiClient, GeminiConfig
from collateral_risk.core.settings import get_settings


def get_gemini_client() -> GeminiClient | None:
    """
    Dependency provider for GeminiClient.

    Returns None when not configured so the route can answer with its fallback payload
    instead of raising during dependency resolution.
    """

    settings = get_settings()
    if not settings.gemini_api_key:
        return None

    config = GeminiConfig(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        model=settings.gemini_model,
        timeout_seconds=float(settings.gemini_timeout_seconds),
    )
    return GeminiClient(config=config)
