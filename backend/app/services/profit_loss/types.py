# backend/app/services/profit_loss/types.py
"""
Result types of the realized profit/loss read models.
"""

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


class ProfitLossVariant(str, enum.Enum):
    """Shape of the cumulative summary."""
    BREAKDOWN = "breakdown"  # total_profit / total_loss / net_profit
    NET = "net"              # total_profit_or_loss only


@dataclass(frozen=True)
class CumulativeProfitLoss:
    """
    Realized gains and losses summed separately.

    total_loss is a positive magnitude; net_profit = total_profit - total_loss.
    """

    total_profit: Decimal
    total_loss: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class NetProfitLoss:
    total_profit_or_loss: Decimal


@dataclass(frozen=True)
class SymbolProfitLoss:
    stock_symbol: str
    total_profit_or_loss: Decimal


@dataclass(frozen=True)
class DailyProfitLoss:
    date: date
    total_profit_or_loss: Decimal


@dataclass
class DailyProfitLossSeries:
    """Realized P&L per sell date, ascending, plus the overall total."""

    points: list[DailyProfitLoss] = field(default_factory=list)
    total: Decimal = Decimal("0")
