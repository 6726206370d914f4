# backend/app/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for current-price providers (base.py)
- Yahoo Finance implementation (yahoo.py)
- Parallel lookups with timeout and zero fallback (price_service.py)

Architecture:
    MarketPriceProvider (ABC)
    └── YahooFinanceProvider (concrete)

    MarketPriceService
    └── Runs provider lookups on a shared thread pool
"""

from app.services.market_data.base import MarketPriceProvider
from app.services.market_data.price_service import MarketPriceService
from app.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "MarketPriceProvider",
    "MarketPriceService",
    "YahooFinanceProvider",
]
