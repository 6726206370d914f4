# backend/app/services/holdings/service.py
"""
Holdings read service.

Loads a user's trades from the ledger once and folds them with the
calculators. Used by the holdings endpoints and by the valuation service.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.exceptions import ComputationError
from app.services.holdings.calculators import HoldingsCalculator
from app.services.holdings.types import Holding
from app.services.ledger import LedgerStore

logger = logging.getLogger(__name__)


class HoldingsService:
    """Current holdings of a user."""

    def __init__(self, store: LedgerStore | None = None) -> None:
        self._store = store or LedgerStore()
        self._holdings = HoldingsCalculator()

    def get_holdings(
            self,
            db: Session,
            user_id: int,
            include_closed: bool = False,
    ) -> list[Holding]:
        """
        Holdings of a user, one entry per symbol.

        Args:
            db: Database session
            user_id: Owner of the trades
            include_closed: Also return symbols with quantity <= 0

        Raises:
            ComputationError: If the trades cannot be loaded
        """
        try:
            trades = self._store.trades_for_user(db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Loading trades for holdings failed (user={user_id}): {e}")
            raise ComputationError("holdings") from e

        holdings = self._holdings.calculate(trades, include_closed=include_closed)
        logger.info(f"Computed {len(holdings)} holdings for user {user_id}")
        return holdings
