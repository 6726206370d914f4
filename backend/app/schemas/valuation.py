# backend/app/schemas/valuation.py
"""
Pydantic schemas for portfolio valuation and holdings.

These schemas handle:
- Holdings (net quantity and average price per symbol)
- Per-symbol unrealized P&L
- Portfolio totals and the single-figure dashboard metrics
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# HOLDINGS
# =============================================================================

class HoldingResponse(BaseModel):
    """One open position."""

    model_config = ConfigDict(from_attributes=True)

    stock_symbol: str = Field(..., description="Symbol held")
    total_quantity: Decimal = Field(..., description="Bought minus sold quantity")
    average_purchase_price: Decimal = Field(
        ...,
        description="All-time quantity-weighted average Buy price"
    )


class HoldingsResponse(BaseModel):
    holdings: list[HoldingResponse] = Field(default_factory=list)


# =============================================================================
# UNREALIZED P&L
# =============================================================================

class HoldingValuationResponse(BaseModel):
    """A holding marked to its current price."""

    model_config = ConfigDict(from_attributes=True)

    stock_symbol: str
    total_quantity: Decimal
    average_purchase_price: Decimal
    current_price: Decimal = Field(
        ...,
        description="Latest price; 0 when no quote could be fetched"
    )
    invested: Decimal = Field(..., description="average_purchase_price × total_quantity")
    market_value: Decimal = Field(..., description="current_price × total_quantity")
    unrealized_pnl: Decimal = Field(..., description="market_value - invested")
    percentage_change: Decimal = Field(
        ...,
        description="(current - average) / average × 100"
    )


class HoldingsPnLResponse(BaseModel):
    holdings: list[HoldingValuationResponse] = Field(default_factory=list)


class PortfolioValuationResponse(BaseModel):
    """Totals over all open holdings plus the per-symbol breakdown."""

    model_config = ConfigDict(from_attributes=True)

    total_invested: Decimal = Field(..., description="Σ average × quantity")
    total_pnl: Decimal = Field(..., description="Σ unrealized P&L")
    current_market_value: Decimal = Field(..., description="Σ current price × quantity")
    percentage_change: Decimal = Field(
        ...,
        description="(market value - invested) / invested × 100, 0 if nothing invested"
    )
    holdings: list[HoldingValuationResponse] = Field(default_factory=list)


# =============================================================================
# SINGLE METRICS
# =============================================================================

class TotalInvestedResponse(BaseModel):
    total_invested: Decimal


class TotalPnLResponse(BaseModel):
    total_pnl: Decimal


class PercentageChangeResponse(BaseModel):
    percentage_change: Decimal
