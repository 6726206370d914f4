# backend/app/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions and the resolved user id as parameters
- Are easily testable via dependency injection

Architecture:
    services/
    ├── exceptions.py          # Domain exceptions
    ├── constants.py           # Rounding steps and limits
    ├── locks.py               # Per-(user, symbol) write serialization
    ├── ledger/store.py        # Trade and profit/loss persistence access
    ├── holdings/              # Cost basis and holdings folds + service
    ├── profit_loss/           # Realized P&L recorder and read models
    ├── trades/service.py      # Trade mutations (validate, persist, derive)
    ├── market_data/           # Price providers and the fallback price service
    ├── valuation/             # Unrealized P&L and portfolio metrics
    └── auth/jwt_handler.py    # Bearer token validation
"""

from app.services.exceptions import (
    ServiceError,
    ValidationError,
    InsufficientHoldingsError,
    NotFoundError,
    TradeNotFoundError,
    DerivedRecordInconsistencyError,
    PersistenceError,
    ComputationError,
    MarketDataError,
    UpstreamPriceUnavailableError,
)
from app.services.holdings import HoldingsService
from app.services.profit_loss import ProfitLossService, RealizedPnLRecorder
from app.services.trades import TradeService
from app.services.market_data import MarketPriceService, YahooFinanceProvider
from app.services.valuation import PortfolioValuationService

__all__ = [
    # Services
    "HoldingsService",
    "ProfitLossService",
    "RealizedPnLRecorder",
    "TradeService",
    "MarketPriceService",
    "YahooFinanceProvider",
    "PortfolioValuationService",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InsufficientHoldingsError",
    "NotFoundError",
    "TradeNotFoundError",
    "DerivedRecordInconsistencyError",
    "PersistenceError",
    "ComputationError",
    "MarketDataError",
    "UpstreamPriceUnavailableError",
]
