# backend/app/schemas/profit_loss.py
"""
Pydantic schemas for realized profit and loss.

Realized figures come from the profit/loss record written for each sell
trade; nothing here depends on current prices.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CumulativeProfitLossResponse(BaseModel):
    """Breakdown variant of the summary."""

    model_config = ConfigDict(from_attributes=True)

    total_profit: Decimal = Field(..., description="Sum of gains")
    total_loss: Decimal = Field(..., description="Sum of losses, as a positive amount")
    net_profit: Decimal = Field(..., description="total_profit - total_loss")


class NetProfitLossResponse(BaseModel):
    """Net variant of the summary."""

    model_config = ConfigDict(from_attributes=True)

    total_profit_or_loss: Decimal


class SymbolProfitLossResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stock_symbol: str
    total_profit_or_loss: Decimal


class SymbolProfitLossListResponse(BaseModel):
    items: list[SymbolProfitLossResponse] = Field(default_factory=list)


class DailyProfitLossResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: dt.date
    total_profit_or_loss: Decimal


class DailyProfitLossSeriesResponse(BaseModel):
    """Realized P&L per sell date, oldest first."""

    model_config = ConfigDict(from_attributes=True)

    points: list[DailyProfitLossResponse] = Field(default_factory=list)
    total: Decimal


class ProfitLossRecordResponse(BaseModel):
    """One realized result, as recorded when its sell trade was stored."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    stock_symbol: str
    sell_trade_id: int
    sell_date: datetime
    sell_price: Decimal
    sell_quantity: Decimal
    average_purchase_price: Decimal
    profit_or_loss: Decimal
    created_at: datetime


class ProfitLossRecordListResponse(BaseModel):
    items: list[ProfitLossRecordResponse] = Field(default_factory=list)
