from __future__ import annotations


class BusinessValidationError(Exception):
    """Raised when request input violates a domain rule; mapped to HTTP 400."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
