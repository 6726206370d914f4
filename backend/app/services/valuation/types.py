# backend/app/services/valuation/types.py
"""
Internal data types for the Portfolio Valuation Service.

These dataclasses are used internally by the valuation calculators.
They are NOT Pydantic schemas - those are defined in app/schemas/valuation.py
for API serialization.

Type Hierarchy:
    HoldingValuation    - One open holding marked to its current price
    PortfolioValuation  - Totals over all holdings plus the per-symbol rows
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class HoldingValuation:
    """
    Unrealized result of one open holding.

    Attributes:
        stock_symbol: The symbol held
        total_quantity: Shares held
        average_purchase_price: All-time weighted average Buy price
        current_price: Latest price (0 when the lookup failed)
        invested: average_purchase_price x total_quantity
        market_value: current_price x total_quantity
        unrealized_pnl: market_value - invested
        percentage_change: (current - average) / average x 100, 0 without average
    """

    stock_symbol: str
    total_quantity: Decimal
    average_purchase_price: Decimal
    current_price: Decimal
    invested: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    percentage_change: Decimal


@dataclass
class PortfolioValuation:
    """
    Totals for all open holdings of a user.

    percentage_change is (current_market_value - total_invested) /
    total_invested x 100, and 0 when nothing is invested.
    """

    total_invested: Decimal
    total_pnl: Decimal
    current_market_value: Decimal
    percentage_change: Decimal
    holdings: list[HoldingValuation] = field(default_factory=list)

    @property
    def holdings_count(self) -> int:
        return len(self.holdings)
