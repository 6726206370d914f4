# backend/app/services/constants.py
"""
Centralized constants for the trade journal services.

Single source of truth for rounding steps, list limits and rate limits.

Usage:
    from app.services.constants import ZERO, MONEY_QUANT, RATE_LIMIT_WRITE
"""

from decimal import Decimal


# =============================================================================
# DECIMAL PRECISION
# =============================================================================

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")

# Profit/loss, invested amount, market value
MONEY_QUANT: Decimal = Decimal("0.01")

# Percentages are reported with two decimals (12.34 means 12.34 %)
PERCENT_QUANT: Decimal = Decimal("0.01")

# Average purchase price keeps the precision of the stored price columns
PRICE_QUANT: Decimal = Decimal("0.00000001")


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# slowapi/limits syntax: "100/minute", "10/hour", ...

# Read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Trade create/update/delete
RATE_LIMIT_WRITE: str = "30/minute"

# Endpoints that fan out to the quote service (valuation, live price)
RATE_LIMIT_MARKET: str = "30/minute"

# Monitoring tools poll frequently
RATE_LIMIT_HEALTH: str = "300/minute"


# =============================================================================
# RESOURCE LIMIT CONSTANTS
# =============================================================================

# Upper bound for the pagination limit parameter
MAX_LIST_LIMIT: int = 1000

DEFAULT_LIST_LIMIT: int = 100
