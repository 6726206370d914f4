# backend/app/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- errors: Error response formats
- market_data: Current price lookups
- pagination: Pagination metadata for list endpoints
- profit_loss: Realized P&L summaries and records
- trades: Trade CRUD operations
- validators: Reusable validation functions (symbol, UTC timestamps)
- valuation: Holdings, unrealized P&L and portfolio totals

Usage:
    from app.schemas import TradeCreate, TradeResponse
    from app.schemas import PortfolioValuationResponse
    from app.schemas import PaginationMeta
"""

from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.schemas.market_data import StockPriceResponse
from app.schemas.pagination import PaginationMeta
from app.schemas.profit_loss import (
    CumulativeProfitLossResponse,
    DailyProfitLossResponse,
    DailyProfitLossSeriesResponse,
    NetProfitLossResponse,
    ProfitLossRecordListResponse,
    ProfitLossRecordResponse,
    SymbolProfitLossListResponse,
    SymbolProfitLossResponse,
)
from app.schemas.trades import (
    TradeBase,
    TradeCreate,
    TradeListResponse,
    TradeResponse,
    TradeUpdate,
)
from app.schemas.valuation import (
    HoldingResponse,
    HoldingsPnLResponse,
    HoldingsResponse,
    HoldingValuationResponse,
    PercentageChangeResponse,
    PortfolioValuationResponse,
    TotalInvestedResponse,
    TotalPnLResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Market data
    "StockPriceResponse",
    # Pagination
    "PaginationMeta",
    # Profit / loss
    "CumulativeProfitLossResponse",
    "DailyProfitLossResponse",
    "DailyProfitLossSeriesResponse",
    "NetProfitLossResponse",
    "ProfitLossRecordListResponse",
    "ProfitLossRecordResponse",
    "SymbolProfitLossListResponse",
    "SymbolProfitLossResponse",
    # Trades
    "TradeBase",
    "TradeCreate",
    "TradeListResponse",
    "TradeResponse",
    "TradeUpdate",
    # Valuation
    "HoldingResponse",
    "HoldingsPnLResponse",
    "HoldingsResponse",
    "HoldingValuationResponse",
    "PercentageChangeResponse",
    "PortfolioValuationResponse",
    "TotalInvestedResponse",
    "TotalPnLResponse",
]
