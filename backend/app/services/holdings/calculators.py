# backend/app/services/holdings/calculators.py
"""
Cost-basis and holdings calculators.

Pure folds over trade lists, independent of the database:
- CostBasisCalculator: net quantity + weighted average price for one symbol
- HoldingsCalculator: the same figures for every symbol in one grouped pass
- realized_profit_or_loss: P&L of a sale against an average price

Cost basis uses the all-time weighted average of Buy trades:
    average_purchase_price = Σ(buy.qty × buy.price) / Σ(buy.qty)
Sell trades reduce the quantity but never move the average, and the
average is not sliced by trade date: a sale dated before a later buy is
still costed with that buy included.

Usage:
    basis = CostBasisCalculator().calculate(trades_for_one_symbol)
    holdings = HoldingsCalculator().calculate(all_user_trades)
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from app.services.constants import MONEY_QUANT
from app.services.holdings.types import CostBasis, Holding, PositionTotals, TradeLike

logger = logging.getLogger(__name__)


# =============================================================================
# COST BASIS CALCULATOR
# =============================================================================

class CostBasisCalculator:
    """
    Calculates the position of a single (user, symbol) pair.

    The caller is responsible for passing trades of one symbol only.
    """

    def calculate(self, trades: Iterable[TradeLike]) -> CostBasis:
        totals = PositionTotals()
        for trade in trades:
            totals.add(trade)
        return totals.to_cost_basis()


# =============================================================================
# HOLDINGS CALCULATOR
# =============================================================================

class HoldingsCalculator:
    """
    Calculates positions for every symbol a user has traded.

    One pass over the full trade list, accumulating per-symbol totals.
    Per symbol the result equals CostBasisCalculator on that symbol's trades.
    """

    def calculate(
            self,
            trades: Iterable[TradeLike],
            include_closed: bool = False,
    ) -> list[Holding]:
        """
        Aggregate trades into holdings.

        Args:
            trades: Trades of one user, any order, any symbols
            include_closed: Keep positions with quantity <= 0

        Returns:
            Holdings sorted by symbol
        """
        totals_by_symbol: dict[str, PositionTotals] = {}
        for trade in trades:
            totals_by_symbol.setdefault(trade.stock_symbol, PositionTotals()).add(trade)

        holdings: list[Holding] = []
        for symbol in sorted(totals_by_symbol):
            basis = totals_by_symbol[symbol].to_cost_basis()
            if not include_closed and not basis.is_open:
                continue
            holdings.append(
                Holding(
                    stock_symbol=symbol,
                    total_quantity=basis.total_quantity,
                    average_purchase_price=basis.average_purchase_price,
                )
            )

        logger.debug(
            f"Aggregated {len(totals_by_symbol)} symbols into {len(holdings)} holdings "
            f"(include_closed={include_closed})"
        )
        return holdings


# =============================================================================
# REALIZED P&L
# =============================================================================

def realized_profit_or_loss(
        sell_price: Decimal,
        average_purchase_price: Decimal,
        sell_quantity: Decimal,
) -> Decimal:
    """(sell_price − average_purchase_price) × sell_quantity, rounded to cents."""
    return ((sell_price - average_purchase_price) * sell_quantity).quantize(MONEY_QUANT)
