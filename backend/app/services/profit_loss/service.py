# backend/app/services/profit_loss/service.py
"""
Realized profit/loss read models.

All figures come from the ProfitLoss rows written by RealizedPnLRecorder;
no trade is re-costed here. Optional date ranges filter on sell_date and
include both end days.

Methods:
    get_cumulative_profit_loss  - profit / loss / net, or a single net figure
    get_symbol_wise_profit_loss - net realized P&L per symbol
    get_daily_profit_loss       - net realized P&L per sell date
    list_records                - the underlying rows
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.models import ProfitLoss
from app.services.constants import ZERO, MONEY_QUANT
from app.services.exceptions import ComputationError
from app.services.ledger import DateRange, LedgerStore
from app.services.profit_loss.types import (
    CumulativeProfitLoss,
    DailyProfitLoss,
    DailyProfitLossSeries,
    NetProfitLoss,
    ProfitLossVariant,
    SymbolProfitLoss,
)

logger = logging.getLogger(__name__)


def _to_money(value) -> Decimal:
    """SUM() yields None for no rows and a float on SQLite."""
    if value is None:
        return ZERO.quantize(MONEY_QUANT)
    return Decimal(str(value)).quantize(MONEY_QUANT)


class ProfitLossService:
    """Aggregations over a user's ProfitLoss rows."""

    def __init__(self, store: LedgerStore | None = None) -> None:
        self._store = store or LedgerStore()

    def get_cumulative_profit_loss(
            self,
            db: Session,
            user_id: int,
            date_range: DateRange | None = None,
            variant: ProfitLossVariant = ProfitLossVariant.BREAKDOWN,
    ) -> CumulativeProfitLoss | NetProfitLoss:
        """
        Sum of realized P&L for a user.

        Args:
            variant: BREAKDOWN returns gains and losses separately (loss as a
                positive number), NET returns only their sum

        Raises:
            ComputationError: If the aggregation query fails
        """
        profit_expr = func.sum(
            case((ProfitLoss.profit_or_loss > 0, ProfitLoss.profit_or_loss), else_=0)
        ).label("total_profit")
        loss_expr = func.sum(
            case((ProfitLoss.profit_or_loss < 0, ProfitLoss.profit_or_loss), else_=0)
        ).label("total_loss")

        query = self._filtered(select(profit_expr, loss_expr), user_id, date_range)

        try:
            row = db.execute(query).one()
        except SQLAlchemyError as e:
            logger.error(f"Cumulative profit/loss query failed (user={user_id}): {e}")
            raise ComputationError("cumulative profit and loss") from e

        total_profit = _to_money(row.total_profit)
        total_loss = abs(_to_money(row.total_loss))
        net_profit = total_profit - total_loss

        logger.info(f"Calculated cumulative profit/loss for user {user_id} ({variant.value})")

        if variant == ProfitLossVariant.NET:
            return NetProfitLoss(total_profit_or_loss=net_profit)
        return CumulativeProfitLoss(
            total_profit=total_profit,
            total_loss=total_loss,
            net_profit=net_profit,
        )

    def get_symbol_wise_profit_loss(
            self,
            db: Session,
            user_id: int,
            date_range: DateRange | None = None,
    ) -> list[SymbolProfitLoss]:
        """Net realized P&L per stock symbol, sorted by symbol."""
        total_expr = func.sum(ProfitLoss.profit_or_loss).label("total_profit_or_loss")
        query = self._filtered(
            select(ProfitLoss.stock_symbol, total_expr),
            user_id,
            date_range,
        ).group_by(ProfitLoss.stock_symbol).order_by(ProfitLoss.stock_symbol)

        try:
            rows = db.execute(query).all()
        except SQLAlchemyError as e:
            logger.error(f"Symbol-wise profit/loss query failed (user={user_id}): {e}")
            raise ComputationError("symbol-wise profit or loss") from e

        logger.info(f"Calculated symbol-wise profit/loss for user {user_id} ({len(rows)} symbols)")
        return [
            SymbolProfitLoss(
                stock_symbol=row.stock_symbol,
                total_profit_or_loss=_to_money(row.total_profit_or_loss),
            )
            for row in rows
        ]

    def get_daily_profit_loss(
            self,
            db: Session,
            user_id: int,
            date_range: DateRange | None = None,
    ) -> DailyProfitLossSeries:
        """Net realized P&L per sell date (UTC calendar day), oldest first."""
        records = self.list_records(db, user_id, date_range)

        by_day: dict = defaultdict(lambda: ZERO)
        for record in records:
            by_day[record.sell_date.date()] += Decimal(record.profit_or_loss)

        points = [
            DailyProfitLoss(date=day, total_profit_or_loss=by_day[day].quantize(MONEY_QUANT))
            for day in sorted(by_day)
        ]
        total = sum((p.total_profit_or_loss for p in points), ZERO).quantize(MONEY_QUANT)
        return DailyProfitLossSeries(points=points, total=total)

    def list_records(
            self,
            db: Session,
            user_id: int,
            date_range: DateRange | None = None,
    ) -> list[ProfitLoss]:
        """ProfitLoss rows of a user, newest sale first."""
        try:
            return self._store.profit_loss_records(db, user_id, date_range)
        except SQLAlchemyError as e:
            logger.error(f"Loading profit/loss records failed (user={user_id}): {e}")
            raise ComputationError("profit and loss records") from e

    @staticmethod
    def _filtered(query: Select, user_id: int, date_range: DateRange | None) -> Select:
        query = query.where(ProfitLoss.user_id == user_id)
        if date_range is None:
            return query
        lower = date_range.lower_bound()
        upper = date_range.upper_bound_exclusive()
        if lower is not None:
            query = query.where(ProfitLoss.sell_date >= lower)
        if upper is not None:
            query = query.where(ProfitLoss.sell_date < upper)
        return query
