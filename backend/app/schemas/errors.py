# backend/app/schemas/errors.py
"""
Pydantic schemas for error responses.

Every handler in main.py answers with ErrorDetail, so clients can rely on
`error` (exception type) and `message` whatever went wrong.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error body."""

    error: str = Field(
        ...,
        description="Error type (e.g., 'InsufficientHoldingsError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Structured context such as symbol, trade id or field"
    )


class ValidationErrorDetail(BaseModel):
    """Body of 422 responses for malformed requests."""

    error: str = Field(default="RequestValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="Field-level validation errors"
    )
