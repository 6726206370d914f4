# backend/app/services/valuation/service.py
"""
Portfolio Valuation Service - marks open holdings to current prices.

- get_portfolio_valuation(): totals plus per-symbol rows
- get_holdings_pnl(): per-symbol rows only
- get_total_invested(): needs no prices
- get_total_pnl() / get_percentage_change(): single figures

Design Principles:
- Dependency Injection: HoldingsService and MarketPriceService via constructor
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Price failures never fail a valuation; the symbol is priced at 0

Usage:
    service = PortfolioValuationService(HoldingsService(), price_service)
    valuation = service.get_portfolio_valuation(db, user_id=1)
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.services.constants import ZERO, MONEY_QUANT
from app.services.holdings import HoldingsService
from app.services.market_data import MarketPriceService
from app.services.valuation.calculators import PortfolioTotalsCalculator
from app.services.valuation.types import HoldingValuation, PortfolioValuation

logger = logging.getLogger(__name__)


class PortfolioValuationService:
    """Unrealized P&L of a user's open holdings."""

    def __init__(
            self,
            holdings_service: HoldingsService,
            price_service: MarketPriceService,
    ) -> None:
        self._holdings = holdings_service
        self._prices = price_service
        self._totals = PortfolioTotalsCalculator()

    def get_portfolio_valuation(self, db: Session, user_id: int) -> PortfolioValuation:
        """
        Value all open holdings of a user.

        Prices for all symbols are fetched concurrently; the call returns
        after at most the price service's timeout even if Yahoo hangs.
        """
        holdings = self._holdings.get_holdings(db, user_id)
        if not holdings:
            return self._totals.calculate([], {})

        prices = self._prices.get_stock_prices([h.stock_symbol for h in holdings])
        valuation = self._totals.calculate(holdings, prices)

        logger.info(
            f"Valued portfolio of user {user_id}: {valuation.holdings_count} holdings, "
            f"invested={valuation.total_invested}, pnl={valuation.total_pnl}"
        )
        return valuation

    def get_holdings_pnl(self, db: Session, user_id: int) -> list[HoldingValuation]:
        return self.get_portfolio_valuation(db, user_id).holdings

    def get_total_invested(self, db: Session, user_id: int) -> Decimal:
        """Sum of average price x quantity over open holdings."""
        holdings = self._holdings.get_holdings(db, user_id)
        total = sum((h.invested for h in holdings), ZERO)
        return total.quantize(MONEY_QUANT)

    def get_total_pnl(self, db: Session, user_id: int) -> Decimal:
        return self.get_portfolio_valuation(db, user_id).total_pnl

    def get_percentage_change(self, db: Session, user_id: int) -> Decimal:
        return self.get_portfolio_valuation(db, user_id).percentage_change
