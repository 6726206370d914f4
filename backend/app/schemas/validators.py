# backend/app/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Stock symbol validation (trim, case preserved)
- Timestamp normalization to UTC
- Symbol query parameter validation

These validators ensure consistent input handling across all schemas.
"""

from datetime import datetime, timezone

# =============================================================================
# CONSTANTS
# =============================================================================

SYMBOL_MAX_LENGTH = 32


# =============================================================================
# STOCK SYMBOL VALIDATION
# =============================================================================

def validate_stock_symbol(value: str) -> str:
    """
    Validate a stock symbol.

    Surrounding whitespace is removed; case is kept as sent, so "aapl" and
    "AAPL" remain different positions.

    Raises:
        ValueError: If the symbol is empty or too long
    """
    if value is None:
        raise ValueError("Stock symbol is required")

    normalized = value.strip()
    if not normalized:
        raise ValueError("Stock symbol is required")
    if len(normalized) > SYMBOL_MAX_LENGTH:
        raise ValueError(f"Stock symbol cannot exceed {SYMBOL_MAX_LENGTH} characters")
    if any(ch.isspace() for ch in normalized):
        raise ValueError(f"Stock symbol cannot contain whitespace: '{normalized}'")

    return normalized


def validate_symbol_query(value: str | None) -> str | None:
    """Validate an optional stock_symbol query parameter (empty means no filter)."""
    if value is None or not value.strip():
        return None
    return validate_stock_symbol(value)


# =============================================================================
# TIMESTAMPS
# =============================================================================

def to_utc(value: datetime) -> datetime:
    """
    Return an aware UTC datetime.

    Naive values are taken to be UTC already.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
