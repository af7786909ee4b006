"""Centralized logging configuration: one JSON object per line on stdout.

Prompts, model replies and request bodies are never logged; records carry
request metadata and the risk-assessment outcome through `extra` fields.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import UTC, datetime
from typing import Any


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Output key -> record attributes to try, in order. Missing attributes become null.
_EXTRA_FIELDS: dict[str, tuple[str, ...]] = {
    "request_id": ("request_id",),
    "method": ("http_method", "method"),
    "path": ("request_path", "path"),
    "status_code": ("status_code",),
    "duration_ms": ("duration_ms",),
    "outcome": ("outcome",),
    "rate_limit_remaining": ("rate_limit_remaining",),
    "reply_chars": ("reply_chars",),
    "field": ("field",),
}

# Third-party loggers that are chatty at INFO (httpx logs every outbound request line).
_QUIET_LOGGERS = ("httpx", "httpcore")


def _first_attr(record: logging.LogRecord, names: tuple[str, ...]) -> Any:
    for name in names:
        value = getattr(record, name, None)
        if value is not None:
            return value
    return None


class JsonFormatter(logging.Formatter):
    """JSON formatter that never raises on records lacking our `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, names in _EXTRA_FIELDS.items():
            payload[key] = _first_attr(record, names)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = LOG_LEVEL) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "collateral_risk.core.logging.JsonFormatter"},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            "root": {"level": level, "handlers": ["default"]},
        }
    )
