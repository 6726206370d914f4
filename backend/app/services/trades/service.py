# backend/app/services/trades/service.py
"""
Trade write path.

Every mutation of a (user, symbol) pair runs under that pair's lock:

    create  Sell: check holdings -> store trade -> record ProfitLoss
            Buy:  store trade
    update  check the edited position -> store trade (+ re-derived ProfitLoss)
    delete  Sell: retract ProfitLoss -> delete trade (restore on failure)
            Buy:  delete trade

Holdings checks and writes happen inside the same lock, so two sells of
the full position cannot both pass the check.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models import TradeEntry, TradeStatus, TransactionType
from app.services.constants import ZERO, MAX_LIST_LIMIT
from app.services.exceptions import (
    DerivedRecordInconsistencyError,
    InsufficientHoldingsError,
    PersistenceError,
    TradeNotFoundError,
    ValidationError,
)
from app.services.holdings import CostBasisCalculator
from app.services.ledger import LedgerStore, TradeFilters
from app.services.locks import SymbolLockRegistry
from app.services.profit_loss import RealizedPnLRecorder

logger = logging.getLogger(__name__)


class TradeService:
    """
    Create, edit, delete and read trades for one user at a time.

    Args:
        store: Ledger access (defaults to a fresh LedgerStore)
        recorder: ProfitLoss bookkeeping for sells
        locks: Shared per-(user, symbol) lock registry
        price_service: Used only when symbol validation is enabled
    """

    def __init__(
            self,
            store: LedgerStore | None = None,
            recorder: RealizedPnLRecorder | None = None,
            locks: SymbolLockRegistry | None = None,
            price_service=None,
    ) -> None:
        self._store = store or LedgerStore()
        self._recorder = recorder or RealizedPnLRecorder(self._store)
        self._locks = locks or SymbolLockRegistry()
        self._price_service = price_service
        self._cost_basis = CostBasisCalculator()

    # =========================================================================
    # READS
    # =========================================================================

    def get_trade(self, db: Session, user_id: int, trade_id: int) -> TradeEntry:
        """
        Raises:
            TradeNotFoundError: Unknown id or a trade of another user
        """
        trade = self._store.get_trade(db, user_id, trade_id)
        if trade is None:
            raise TradeNotFoundError(trade_id)
        return trade

    def list_trades(
            self,
            db: Session,
            user_id: int,
            filters: TradeFilters | None = None,
            skip: int = 0,
            limit: int = 100,
    ) -> tuple[list[TradeEntry], int]:
        """Page of the user's trades (newest first) and the total match count."""
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        return self._store.list_trades(db, user_id, filters or TradeFilters(), max(skip, 0), limit)

    # =========================================================================
    # CREATE
    # =========================================================================

    def create_trade(
            self,
            db: Session,
            user_id: int,
            stock_symbol: str,
            transaction_type: TransactionType,
            quantity: Decimal,
            price: Decimal,
            trade_date: datetime,
            status: TradeStatus = TradeStatus.OPEN,
    ) -> TradeEntry:
        """
        Store a trade; a Sell also gets its ProfitLoss row.

        Raises:
            ValidationError: Empty or unknown symbol, non-positive amounts
            InsufficientHoldingsError: Sell exceeds the current position
            PersistenceError: The trade could not be written
            DerivedRecordInconsistencyError: The ProfitLoss row could not be
                written (the trade has been removed again)
        """
        symbol = (stock_symbol or "").strip()
        if not symbol:
            raise ValidationError("stock_symbol must not be empty", field="stock_symbol")
        self._check_positive(quantity, "quantity")
        self._check_positive(price, "price")
        self._check_symbol_exists(symbol)

        with self._locks.hold(user_id, symbol):
            if transaction_type == TransactionType.SELL:
                held = self._cost_basis.calculate(
                    self._store.trades_for_symbol(db, user_id, symbol)
                ).total_quantity
                if quantity > held:
                    logger.warning(
                        f"Rejected sell of {quantity} {symbol} for user {user_id}: {held} held"
                    )
                    raise InsufficientHoldingsError(symbol, quantity, held)

            trade = TradeEntry(
                user_id=user_id,
                stock_symbol=symbol,
                transaction_type=transaction_type,
                quantity=quantity,
                price=price,
                trade_date=trade_date,
                status=status,
            )
            try:
                self._store.save(db, trade)
            except SQLAlchemyError as e:
                logger.error(f"Saving {transaction_type.value} trade of {symbol} failed (user={user_id}): {e}")
                raise PersistenceError("save the trade") from e

            if trade.is_sell:
                self._recorder.record(db, trade)

        logger.info(
            f"Created {transaction_type.value} trade {trade.id}: {quantity} {symbol} @ {price} "
            f"(user={user_id})"
        )
        return trade

    # =========================================================================
    # UPDATE
    # =========================================================================

    def update_trade(
            self,
            db: Session,
            user_id: int,
            trade_id: int,
            quantity: Decimal | None = None,
            price: Decimal | None = None,
            trade_date: datetime | None = None,
            status: TradeStatus | None = None,
    ) -> TradeEntry:
        """
        Edit quantity, price, date or status of a trade.

        Symbol and transaction type are fixed once stored. The edited trade is
        checked against the position formed by the symbol's other trades: a
        Sell may not exceed it, a Buy may not shrink it below zero. A Sell's
        ProfitLoss row is rewritten in the same commit; Buy edits leave
        existing ProfitLoss rows as recorded.

        Raises:
            TradeNotFoundError: Unknown trade
            ValidationError: Non-positive quantity or price
            InsufficientHoldingsError: The edit breaks the position
            DerivedRecordInconsistencyError: Sell without a ProfitLoss row
            PersistenceError: The write failed
        """
        if quantity is not None:
            self._check_positive(quantity, "quantity")
        if price is not None:
            self._check_positive(price, "price")

        symbol = self.get_trade(db, user_id, trade_id).stock_symbol

        with self._locks.hold(user_id, symbol):
            trade = self.get_trade(db, user_id, trade_id)

            new_quantity = quantity if quantity is not None else Decimal(trade.quantity)
            others = self._cost_basis.calculate(
                self._store.trades_for_symbol(db, user_id, symbol, exclude_trade_id=trade.id)
            )

            if trade.is_sell and new_quantity > others.total_quantity:
                raise InsufficientHoldingsError(symbol, new_quantity, others.total_quantity)
            if not trade.is_sell and others.total_quantity + new_quantity < ZERO:
                raise InsufficientHoldingsError(
                    symbol,
                    new_quantity,
                    others.total_quantity,
                    message=(
                        f"Cannot reduce buy of {symbol} to {new_quantity}: "
                        f"later sales would exceed the position"
                    ),
                )

            record = None
            if trade.is_sell:
                record = self._store.profit_loss_for_trade(db, trade.id)
                if record is None:
                    logger.error(f"Sell trade {trade.id} has no profit/loss record; update aborted")
                    raise DerivedRecordInconsistencyError(
                        f"Profit/loss record for trade {trade.id} not found; trade was not updated",
                        trade_id=trade.id,
                        stock_symbol=symbol,
                    )

            if quantity is not None:
                trade.quantity = quantity
            if price is not None:
                trade.price = price
            if trade_date is not None:
                trade.trade_date = trade_date
            if status is not None:
                trade.status = status

            changed = [trade]
            if record is not None:
                # Sells never move the average, so the other trades carry all of it
                self._recorder.rederive(record, trade, others.average_purchase_price)
                changed.append(record)

            try:
                self._store.save_all(db, changed)
            except SQLAlchemyError as e:
                logger.error(f"Updating trade {trade_id} failed (user={user_id}): {e}")
                raise PersistenceError("update the trade") from e

        logger.info(f"Updated trade {trade_id} (user={user_id}, symbol={symbol})")
        return trade

    # =========================================================================
    # DELETE
    # =========================================================================

    def delete_trade(self, db: Session, user_id: int, trade_id: int) -> None:
        """
        Delete a trade; a Sell loses its ProfitLoss row first.

        Deleting a Buy is not checked against later sells.

        Raises:
            TradeNotFoundError: Unknown trade
            DerivedRecordInconsistencyError: The ProfitLoss row is missing or
                could not be removed (the trade is kept)
            PersistenceError: The trade could not be deleted (its ProfitLoss
                row has been restored)
        """
        symbol = self.get_trade(db, user_id, trade_id).stock_symbol

        with self._locks.hold(user_id, symbol):
            trade = self.get_trade(db, user_id, trade_id)

            snapshot = None
            if trade.is_sell:
                snapshot = self._recorder.retract(db, trade)

            try:
                self._store.delete(db, trade)
            except SQLAlchemyError as e:
                logger.error(f"Deleting trade {trade_id} failed (user={user_id}): {e}")
                if snapshot is not None:
                    self._recorder.restore(db, snapshot)
                raise PersistenceError("delete the trade") from e

        logger.info(f"Deleted trade {trade_id} (user={user_id}, symbol={symbol})")

    # =========================================================================
    # VALIDATION HELPERS
    # =========================================================================

    @staticmethod
    def _check_positive(value: Decimal, field: str) -> None:
        if value is None or value <= ZERO:
            raise ValidationError(f"{field} must be greater than 0", field=field)

    def _check_symbol_exists(self, symbol: str) -> None:
        if not settings.validate_symbols_on_create or self._price_service is None:
            return
        if not self._price_service.symbol_exists(symbol):
            raise ValidationError(f"Unknown stock symbol '{symbol}'", field="stock_symbol")
