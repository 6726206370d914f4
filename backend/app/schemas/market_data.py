# backend/app/schemas/market_data.py
"""
Pydantic schemas for market price lookups.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class StockPriceResponse(BaseModel):
    """
    Current price of one symbol.

    price is 0 when the provider could not answer in time; valuation
    endpoints use the same fallback.
    """

    stock_symbol: str = Field(..., examples=["AAPL"])
    price: Decimal = Field(..., ge=0, description="Latest price, 0 if unavailable")
