# backend/app/services/ledger/store.py
"""
Ledger store: persistence access for trades and their profit/loss records.

Every query is scoped to one user. Write helpers commit one record at a
time and roll the session back before re-raising when the database
refuses the write, so callers can run compensation on a clean session.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.models import TradeEntry, ProfitLoss
from app.services.ledger.types import DateRange, TradeFilters

logger = logging.getLogger(__name__)


class LedgerStore:
    """Stateless repository over TradeEntry and ProfitLoss rows."""

    # =========================================================================
    # TRADES: READS
    # =========================================================================

    def get_trade(self, db: Session, user_id: int, trade_id: int) -> TradeEntry | None:
        """Fetch a trade owned by user_id, or None."""
        query = select(TradeEntry).where(
            TradeEntry.id == trade_id,
            TradeEntry.user_id == user_id,
        )
        return db.scalar(query)

    def trades_for_symbol(
            self,
            db: Session,
            user_id: int,
            stock_symbol: str,
            exclude_trade_id: int | None = None,
    ) -> list[TradeEntry]:
        """All trades of one (user, symbol) pair in trade-date order."""
        query = (
            select(TradeEntry)
            .where(
                TradeEntry.user_id == user_id,
                TradeEntry.stock_symbol == stock_symbol,
            )
            .order_by(TradeEntry.trade_date, TradeEntry.id)
        )
        if exclude_trade_id is not None:
            query = query.where(TradeEntry.id != exclude_trade_id)
        return list(db.scalars(query).all())

    def trades_for_user(self, db: Session, user_id: int) -> list[TradeEntry]:
        """The user's full trade history, grouped by symbol, oldest first."""
        query = (
            select(TradeEntry)
            .where(TradeEntry.user_id == user_id)
            .order_by(TradeEntry.stock_symbol, TradeEntry.trade_date, TradeEntry.id)
        )
        return list(db.scalars(query).all())

    def list_trades(
            self,
            db: Session,
            user_id: int,
            filters: TradeFilters,
            skip: int,
            limit: int,
    ) -> tuple[list[TradeEntry], int]:
        """
        Page through a user's trades, newest first.

        Returns:
            (items for the page, total matching rows)
        """
        base = self._apply_trade_filters(
            select(TradeEntry).where(TradeEntry.user_id == user_id),
            filters,
        )
        total = db.scalar(select(func.count()).select_from(base.subquery())) or 0

        query = (
            base.order_by(TradeEntry.trade_date.desc(), TradeEntry.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query).all()), total

    @staticmethod
    def _apply_trade_filters(query: Select, filters: TradeFilters) -> Select:
        if filters.stock_symbol:
            query = query.where(TradeEntry.stock_symbol == filters.stock_symbol)
        if filters.transaction_type:
            query = query.where(TradeEntry.transaction_type == filters.transaction_type)
        if filters.date_range:
            lower = filters.date_range.lower_bound()
            upper = filters.date_range.upper_bound_exclusive()
            if lower is not None:
                query = query.where(TradeEntry.trade_date >= lower)
            if upper is not None:
                query = query.where(TradeEntry.trade_date < upper)
        return query

    # =========================================================================
    # PROFIT/LOSS: READS
    # =========================================================================

    def profit_loss_for_trade(self, db: Session, sell_trade_id: int) -> ProfitLoss | None:
        query = select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell_trade_id)
        return db.scalar(query)

    def profit_loss_records(
            self,
            db: Session,
            user_id: int,
            date_range: DateRange | None = None,
    ) -> list[ProfitLoss]:
        """A user's realized P&L records, newest sale first, filtered on sell_date."""
        query = select(ProfitLoss).where(ProfitLoss.user_id == user_id)
        if date_range is not None:
            lower = date_range.lower_bound()
            upper = date_range.upper_bound_exclusive()
            if lower is not None:
                query = query.where(ProfitLoss.sell_date >= lower)
            if upper is not None:
                query = query.where(ProfitLoss.sell_date < upper)
        query = query.order_by(ProfitLoss.sell_date.desc(), ProfitLoss.id.desc())
        return list(db.scalars(query).all())

    # =========================================================================
    # WRITES (one committed record per call)
    # =========================================================================

    def save(self, db: Session, record: TradeEntry | ProfitLoss) -> None:
        """Insert or update one record and commit."""
        db.add(record)
        self._commit(db)
        db.refresh(record)

    def save_all(self, db: Session, records: Sequence[TradeEntry | ProfitLoss]) -> None:
        """Commit changes to several already-loaded records together."""
        for record in records:
            db.add(record)
        self._commit(db)
        for record in records:
            db.refresh(record)

    def delete(self, db: Session, record: TradeEntry | ProfitLoss) -> None:
        """Delete one record and commit."""
        db.delete(record)
        self._commit(db)

    @staticmethod
    def _commit(db: Session) -> None:
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
