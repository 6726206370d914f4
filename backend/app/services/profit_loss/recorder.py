# backend/app/services/profit_loss/recorder.py
"""
Realized P&L recorder.

Keeps exactly one ProfitLoss row per sell trade:

    record()   sell trade stored  -> derive and store its ProfitLoss row;
                                     if that write fails, delete the trade again
    retract()  sell trade deleted -> delete its ProfitLoss row first;
                                     missing row or failed delete aborts
    restore()  trade delete failed after retract -> put the row back
    rederive() sell trade edited  -> rewrite the row from the new values

The caller (TradeService) holds the (user, symbol) lock around each call.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import ProfitLoss, TradeEntry
from app.services.exceptions import DerivedRecordInconsistencyError
from app.services.holdings import CostBasisCalculator, realized_profit_or_loss
from app.services.ledger import LedgerStore

logger = logging.getLogger(__name__)


class RealizedPnLRecorder:
    """Derives, retracts and restores ProfitLoss rows for sell trades."""

    def __init__(self, store: LedgerStore | None = None) -> None:
        self._store = store or LedgerStore()
        self._cost_basis = CostBasisCalculator()

    # =========================================================================
    # DERIVATION
    # =========================================================================

    def derive(self, db: Session, sell_trade: TradeEntry) -> ProfitLoss:
        """
        Build (but do not store) the ProfitLoss row of a sell trade.

        The average purchase price covers every Buy of the symbol currently
        in the ledger, whatever its date.
        """
        trades = self._store.trades_for_symbol(db, sell_trade.user_id, sell_trade.stock_symbol)
        average = self._cost_basis.calculate(trades).average_purchase_price

        record = ProfitLoss(
            user_id=sell_trade.user_id,
            stock_symbol=sell_trade.stock_symbol,
            sell_trade_id=sell_trade.id,
        )
        self._apply(record, sell_trade, average)
        return record

    def rederive(self, record: ProfitLoss, sell_trade: TradeEntry, average_purchase_price: Decimal) -> None:
        """Overwrite an existing row with the sell trade's current values."""
        self._apply(record, sell_trade, average_purchase_price)

    @staticmethod
    def _apply(record: ProfitLoss, sell_trade: TradeEntry, average_purchase_price: Decimal) -> None:
        record.sell_date = sell_trade.trade_date
        record.sell_price = sell_trade.price
        record.sell_quantity = sell_trade.quantity
        record.average_purchase_price = average_purchase_price
        record.profit_or_loss = realized_profit_or_loss(
            sell_price=sell_trade.price,
            average_purchase_price=average_purchase_price,
            sell_quantity=sell_trade.quantity,
        )

    # =========================================================================
    # CREATE PATH
    # =========================================================================

    def record(self, db: Session, sell_trade: TradeEntry) -> ProfitLoss:
        """
        Store the ProfitLoss row of a freshly stored sell trade.

        Raises:
            DerivedRecordInconsistencyError: The row could not be written; the
                sell trade has been deleted again (or, if even that failed,
                the inconsistency is logged at CRITICAL level)
        """
        trade_id = sell_trade.id
        symbol = sell_trade.stock_symbol
        user_id = sell_trade.user_id

        try:
            record = self.derive(db, sell_trade)
            self._store.save(db, record)
        except SQLAlchemyError as e:
            logger.error(
                f"Recording profit/loss failed for sell trade {trade_id} "
                f"(user={user_id}, symbol={symbol}): {e}"
            )
            db.rollback()
            self._compensate_create(db, sell_trade, user_id, symbol, trade_id)
            raise DerivedRecordInconsistencyError(
                "Could not record profit/loss for the sell trade; the trade was not saved",
                trade_id=trade_id,
                stock_symbol=symbol,
            ) from e

        logger.info(
            f"Recorded profit/loss {record.profit_or_loss} for sell trade {trade_id} "
            f"(user={user_id}, symbol={symbol}, average={record.average_purchase_price})"
        )
        return record

    def _compensate_create(
            self,
            db: Session,
            sell_trade: TradeEntry,
            user_id: int,
            symbol: str,
            trade_id: int,
    ) -> None:
        try:
            self._store.delete(db, sell_trade)
        except SQLAlchemyError as e:
            logger.critical(
                f"Sell trade {trade_id} (user={user_id}, symbol={symbol}) has no profit/loss "
                f"record and could not be removed: {e}"
            )
            return
        logger.warning(f"Removed sell trade {trade_id} after failed profit/loss write")

    # =========================================================================
    # DELETE PATH
    # =========================================================================

    def retract(self, db: Session, sell_trade: TradeEntry) -> ProfitLoss:
        """
        Delete the ProfitLoss row of a sell trade that is about to be deleted.

        Returns:
            A detached copy of the deleted row (for restore())

        Raises:
            DerivedRecordInconsistencyError: Row missing or delete failed; the
                trade must not be deleted
        """
        record = self._store.profit_loss_for_trade(db, sell_trade.id)
        if record is None:
            logger.error(
                f"No profit/loss record for sell trade {sell_trade.id} "
                f"(user={sell_trade.user_id}, symbol={sell_trade.stock_symbol}); delete aborted"
            )
            raise DerivedRecordInconsistencyError(
                f"Profit/loss record for trade {sell_trade.id} not found; trade was not deleted",
                trade_id=sell_trade.id,
                stock_symbol=sell_trade.stock_symbol,
            )

        snapshot = self._copy(record)
        try:
            self._store.delete(db, record)
        except SQLAlchemyError as e:
            logger.error(
                f"Deleting profit/loss record {snapshot.id} of trade {sell_trade.id} failed: {e}"
            )
            raise DerivedRecordInconsistencyError(
                f"Could not remove the profit/loss record of trade {sell_trade.id}; "
                "trade was not deleted",
                trade_id=sell_trade.id,
                stock_symbol=sell_trade.stock_symbol,
            ) from e

        logger.info(f"Retracted profit/loss record of sell trade {sell_trade.id}")
        return snapshot

    def restore(self, db: Session, snapshot: ProfitLoss) -> None:
        """
        Re-insert a row removed by retract().

        Raises:
            DerivedRecordInconsistencyError: The row could not be written back
        """
        try:
            self._store.save(db, snapshot)
        except SQLAlchemyError as e:
            logger.critical(
                f"Sell trade {snapshot.sell_trade_id} (user={snapshot.user_id}, "
                f"symbol={snapshot.stock_symbol}) lost its profit/loss record: {e}"
            )
            raise DerivedRecordInconsistencyError(
                f"Trade {snapshot.sell_trade_id} could not be deleted and its "
                "profit/loss record could not be restored",
                trade_id=snapshot.sell_trade_id,
                stock_symbol=snapshot.stock_symbol,
            ) from e
        logger.warning(f"Restored profit/loss record of sell trade {snapshot.sell_trade_id}")

    @staticmethod
    def _copy(record: ProfitLoss) -> ProfitLoss:
        return ProfitLoss(
            id=record.id,
            user_id=record.user_id,
            stock_symbol=record.stock_symbol,
            sell_trade_id=record.sell_trade_id,
            sell_date=record.sell_date,
            sell_price=record.sell_price,
            sell_quantity=record.sell_quantity,
            average_purchase_price=record.average_purchase_price,
            profit_or_loss=record.profit_or_loss,
            created_at=record.created_at,
        )
