from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from collateral_risk.core.settings import get_settings

_MANAGED_ENV = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "CORS_ORIGIN",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    # An empty key overrides any developer .env so tests start "unconfigured".
    monkeypatch.setenv("GEMINI_API_KEY", "")
    # Settings are cached via @lru_cache; clear so each test sees its own env.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gemini_api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    get_settings.cache_clear()
    return "test-key"


@pytest.fixture
def client() -> Iterator[TestClient]:
    from collateral_risk.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
