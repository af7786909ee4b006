from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthOut(BaseModel):
    """Health check response."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(
        description="Service status indicator. `healthy` means the API process is up and responding.",
        examples=["healthy"],
    )
    timestamp: datetime = Field(description="Current server time (UTC).")
    gemini_configured: bool = Field(
        alias="geminiConfigured",
        description="Whether a Gemini API key is configured. The key itself is never exposed.",
    )


class ErrorOut(BaseModel):
    """Generic client error payload."""

    error: str = Field(examples=["Invalid BTC amount"])
