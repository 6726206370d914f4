# backend/app/services/valuation/calculators.py
"""
Valuation calculators.

Pure functions of holdings and prices, no database or network access:
- UnrealizedPnLCalculator: marks one holding to its current price
- PortfolioTotalsCalculator: sums the marked holdings

Money amounts are rounded to cents and percentages to two decimals only
at the end, after summing unrounded values.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from app.services.constants import ZERO, HUNDRED, MONEY_QUANT, PERCENT_QUANT
from app.services.holdings import Holding
from app.services.valuation.types import HoldingValuation, PortfolioValuation

logger = logging.getLogger(__name__)


def percentage_change(current: Decimal, base: Decimal) -> Decimal:
    """(current - base) / base x 100, rounded; 0 when base is 0."""
    if base == ZERO:
        return ZERO.quantize(PERCENT_QUANT)
    return ((current - base) / base * HUNDRED).quantize(PERCENT_QUANT)


# =============================================================================
# UNREALIZED P&L CALCULATOR
# =============================================================================

class UnrealizedPnLCalculator:
    """
    Calculates unrealized P&L (paper gains/losses) on one open position.

    Formula:
        unrealized_pnl = (current_price - average_purchase_price) × quantity
        percentage     = (current_price - average_purchase_price) / average × 100

    A current price of 0 (failed lookup) is valued as is: the holding shows
    a full paper loss rather than disappearing from the totals.
    """

    def calculate(self, holding: Holding, current_price: Decimal) -> HoldingValuation:
        quantity = holding.total_quantity
        average = holding.average_purchase_price

        invested = average * quantity
        market_value = current_price * quantity

        return HoldingValuation(
            stock_symbol=holding.stock_symbol,
            total_quantity=quantity,
            average_purchase_price=average,
            current_price=current_price,
            invested=invested.quantize(MONEY_QUANT),
            market_value=market_value.quantize(MONEY_QUANT),
            unrealized_pnl=(market_value - invested).quantize(MONEY_QUANT),
            percentage_change=percentage_change(current_price, average),
        )


# =============================================================================
# PORTFOLIO TOTALS
# =============================================================================

class PortfolioTotalsCalculator:
    """Aggregates holding valuations into portfolio totals."""

    def __init__(self) -> None:
        self._unrealized = UnrealizedPnLCalculator()

    def calculate(
            self,
            holdings: Iterable[Holding],
            prices: dict[str, Decimal],
    ) -> PortfolioValuation:
        """
        Value every holding and sum the results.

        Args:
            holdings: Open holdings of one user
            prices: Current price per symbol; missing symbols count as 0
        """
        total_invested = ZERO
        current_market_value = ZERO
        rows: list[HoldingValuation] = []

        for holding in holdings:
            price = prices.get(holding.stock_symbol, ZERO)
            rows.append(self._unrealized.calculate(holding, price))
            total_invested += holding.average_purchase_price * holding.total_quantity
            current_market_value += price * holding.total_quantity

        total_pnl = current_market_value - total_invested

        logger.debug(
            f"Valued {len(rows)} holdings: invested={total_invested}, "
            f"market_value={current_market_value}"
        )
        return PortfolioValuation(
            total_invested=total_invested.quantize(MONEY_QUANT),
            total_pnl=total_pnl.quantize(MONEY_QUANT),
            current_market_value=current_market_value.quantize(MONEY_QUANT),
            percentage_change=percentage_change(current_market_value, total_invested),
            holdings=rows,
        )
