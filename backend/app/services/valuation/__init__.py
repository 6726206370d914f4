# backend/app/services/valuation/__init__.py
"""
Portfolio valuation package.

This package contains:
- Internal data types (types.py)
- Pure calculators (calculators.py)
- The orchestrating service (service.py)

Usage:
    from app.services.valuation import PortfolioValuationService

    service = PortfolioValuationService(holdings_service, price_service)
    valuation = service.get_portfolio_valuation(db, user_id=1)
"""

from app.services.valuation.calculators import (
    PortfolioTotalsCalculator,
    UnrealizedPnLCalculator,
    percentage_change,
)
from app.services.valuation.service import PortfolioValuationService
from app.services.valuation.types import HoldingValuation, PortfolioValuation

__all__ = [
    "PortfolioValuationService",
    "PortfolioTotalsCalculator",
    "UnrealizedPnLCalculator",
    "percentage_change",
    "HoldingValuation",
    "PortfolioValuation",
]
