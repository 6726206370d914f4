# backend/app/services/holdings/__init__.py
"""
Holdings package.

- calculators.py: pure cost-basis / holdings folds
- types.py: CostBasis, Holding, PositionTotals
- service.py: HoldingsService (loads trades, runs the folds)
"""

from app.services.holdings.calculators import (
    CostBasisCalculator,
    HoldingsCalculator,
    realized_profit_or_loss,
)
from app.services.holdings.service import HoldingsService
from app.services.holdings.types import CostBasis, Holding, PositionTotals

__all__ = [
    "CostBasisCalculator",
    "HoldingsCalculator",
    "realized_profit_or_loss",
    "HoldingsService",
    "CostBasis",
    "Holding",
    "PositionTotals",
]
