"""Errors shared by services and routes."""


class ValidationError(Exception):
    """Request data is missing or malformed (maps to HTTP 400)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
