# backend/app/services/profit_loss/__init__.py
"""
Realized profit/loss package.

- recorder.py: keeps one ProfitLoss row per sell trade
- service.py: summaries over those rows
- types.py: result dataclasses
"""

from app.services.profit_loss.recorder import RealizedPnLRecorder
from app.services.profit_loss.service import ProfitLossService
from app.services.profit_loss.types import (
    CumulativeProfitLoss,
    DailyProfitLoss,
    DailyProfitLossSeries,
    NetProfitLoss,
    ProfitLossVariant,
    SymbolProfitLoss,
)

__all__ = [
    "RealizedPnLRecorder",
    "ProfitLossService",
    "CumulativeProfitLoss",
    "DailyProfitLoss",
    "DailyProfitLossSeries",
    "NetProfitLoss",
    "ProfitLossVariant",
    "SymbolProfitLoss",
]
