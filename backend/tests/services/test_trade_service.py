# backend/tests/services/test_trade_service.py
"""
Tests for TradeService.

Covers:
- Sell checks against the current position
- ProfitLoss bookkeeping on create, update and delete
- Compensation when the ProfitLoss write fails
- Abort when a sell's ProfitLoss row is missing
- Concurrent sells of the same position
"""

import logging
import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.models import Base, ProfitLoss, TradeEntry, TradeStatus, TransactionType
from app.services.exceptions import (
    DerivedRecordInconsistencyError,
    InsufficientHoldingsError,
    PersistenceError,
    TradeNotFoundError,
    ValidationError,
)
from app.services.ledger import LedgerStore, TradeFilters
from app.services.locks import SymbolLockRegistry
from app.services.profit_loss import RealizedPnLRecorder
from app.services.trades import TradeService
from tests.conftest import create_user, utc

BUY = TransactionType.BUY
SELL = TransactionType.SELL


@pytest.fixture
def user(db):
    return create_user(db)


def _record(service, db, user, tx_type, quantity, price, symbol="AAPL", when=None):
    return service.create_trade(
        db,
        user_id=user.id,
        stock_symbol=symbol,
        transaction_type=tx_type,
        quantity=Decimal(quantity),
        price=Decimal(price),
        trade_date=when or utc(2024, 1, 15),
    )


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


def _service_with(store: LedgerStore) -> TradeService:
    return TradeService(store=store, recorder=RealizedPnLRecorder(store), locks=SymbolLockRegistry())


# =============================================================================
# CREATE
# =============================================================================

class TestCreateTrade:

    def test_buy_creates_no_profit_loss(self, db, trade_service, user):
        trade = _record(trade_service, db, user, BUY, "10", "100")

        assert trade.id is not None
        assert trade.status == TradeStatus.OPEN
        assert _count(db, ProfitLoss) == 0

    def test_sell_records_profit_against_weighted_average(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        _record(trade_service, db, user, BUY, "10", "150")
        sell = _record(trade_service, db, user, SELL, "20", "150")

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.average_purchase_price == Decimal("125")
        assert record.profit_or_loss == Decimal("500.00")
        assert record.sell_quantity == Decimal("20")
        assert record.stock_symbol == "AAPL"

    def test_partial_sell(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "5", "100")
        _record(trade_service, db, user, BUY, "5", "200")
        sell = _record(trade_service, db, user, SELL, "4", "180")

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.profit_or_loss == Decimal("120.00")

    def test_sell_at_a_loss(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "3", "90")

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.profit_or_loss == Decimal("-30.00")

    def test_oversell_rejected_and_nothing_stored(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "5", "100")

        with pytest.raises(InsufficientHoldingsError) as exc_info:
            _record(trade_service, db, user, SELL, "6", "120")

        assert exc_info.value.requested == Decimal("6")
        assert exc_info.value.available == Decimal("5")
        assert _count(db, TradeEntry) == 1
        assert _count(db, ProfitLoss) == 0

    def test_sell_without_position_rejected(self, db, trade_service, user):
        with pytest.raises(InsufficientHoldingsError):
            _record(trade_service, db, user, SELL, "1", "120")

    def test_positions_are_per_user(self, db, trade_service, user):
        other = create_user(db, email="other@example.com")
        _record(trade_service, db, other, BUY, "10", "100")

        with pytest.raises(InsufficientHoldingsError):
            _record(trade_service, db, user, SELL, "1", "120")

    def test_symbol_case_is_a_different_position(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100", symbol="AAPL")

        with pytest.raises(InsufficientHoldingsError):
            _record(trade_service, db, user, SELL, "1", "120", symbol="aapl")

    def test_symbol_is_trimmed(self, db, trade_service, user):
        trade = _record(trade_service, db, user, BUY, "1", "100", symbol="  MSFT ")
        assert trade.stock_symbol == "MSFT"

    @pytest.mark.parametrize("quantity,price,field", [
        ("0", "100", "quantity"),
        ("-1", "100", "quantity"),
        ("1", "0", "price"),
    ])
    def test_non_positive_amounts_rejected(self, db, trade_service, user, quantity, price, field):
        with pytest.raises(ValidationError) as exc_info:
            _record(trade_service, db, user, BUY, quantity, price)
        assert exc_info.value.field == field

    def test_empty_symbol_rejected(self, db, trade_service, user):
        with pytest.raises(ValidationError):
            _record(trade_service, db, user, BUY, "1", "100", symbol="   ")

    def test_profit_loss_write_failure_removes_sell(self, db, user):
        class FailingProfitLossStore(LedgerStore):
            def save(self, db, record):
                if isinstance(record, ProfitLoss):
                    raise OperationalError("INSERT INTO profit_losses", {}, Exception("disk I/O error"))
                super().save(db, record)

        service = _service_with(FailingProfitLossStore())
        _record(service, db, user, BUY, "10", "100")

        with pytest.raises(DerivedRecordInconsistencyError) as exc_info:
            _record(service, db, user, SELL, "5", "120")

        assert exc_info.value.stock_symbol == "AAPL"
        sells = db.scalars(select(TradeEntry).where(TradeEntry.transaction_type == SELL)).all()
        assert sells == []
        assert _count(db, ProfitLoss) == 0
        assert _count(db, TradeEntry) == 1

    def test_failed_compensation_keeps_sell_and_logs_critical(self, db, user, caplog):
        class FailingCompensationStore(LedgerStore):
            def save(self, db, record):
                if isinstance(record, ProfitLoss):
                    raise OperationalError("INSERT INTO profit_losses", {}, Exception("disk I/O error"))
                super().save(db, record)

            def delete(self, db, record):
                if isinstance(record, TradeEntry):
                    raise OperationalError("DELETE FROM trade_entries", {}, Exception("disk I/O error"))
                super().delete(db, record)

        service = _service_with(FailingCompensationStore())
        _record(service, db, user, BUY, "10", "100")

        with caplog.at_level(logging.CRITICAL, logger="app.services.profit_loss.recorder"):
            with pytest.raises(DerivedRecordInconsistencyError):
                _record(service, db, user, SELL, "5", "120")

        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert _count(db, TradeEntry) == 2
        assert _count(db, ProfitLoss) == 0

    def test_trade_write_failure_is_persistence_error(self, db, user):
        class FailingTradeStore(LedgerStore):
            def save(self, db, record):
                raise OperationalError("INSERT INTO trade_entries", {}, Exception("database is locked"))

        service = _service_with(FailingTradeStore())

        with pytest.raises(PersistenceError):
            _record(service, db, user, BUY, "10", "100")

    def test_symbol_validation_when_enabled(self, db, user, price_service, mock_provider, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "validate_symbols_on_create", True)
        mock_provider.set_price("AAPL", "190")
        store = LedgerStore()
        service = TradeService(store=store, price_service=price_service)

        _record(service, db, user, BUY, "1", "100", symbol="AAPL")
        with pytest.raises(ValidationError) as exc_info:
            _record(service, db, user, BUY, "1", "100", symbol="NOPE")
        assert exc_info.value.field == "stock_symbol"


# =============================================================================
# READ
# =============================================================================

class TestReadTrades:

    def test_get_trade_of_other_user_not_found(self, db, trade_service, user):
        other = create_user(db, email="other@example.com")
        trade = _record(trade_service, db, other, BUY, "1", "100")

        with pytest.raises(TradeNotFoundError):
            trade_service.get_trade(db, user.id, trade.id)

    def test_list_clamps_limit(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "1", "100")

        items, total = trade_service.list_trades(db, user.id, TradeFilters(), skip=-3, limit=0)

        assert total == 1
        assert len(items) == 1


# =============================================================================
# UPDATE
# =============================================================================

class TestUpdateTrade:

    def test_sell_edit_rederives_profit_loss(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")

        trade_service.update_trade(db, user.id, sell.id, price=Decimal("130"), quantity=Decimal("6"))

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.sell_price == Decimal("130")
        assert record.sell_quantity == Decimal("6")
        assert record.profit_or_loss == Decimal("180.00")

    def test_sell_edit_date_moves_record(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120", when=utc(2024, 2, 1))

        trade_service.update_trade(db, user.id, sell.id, trade_date=utc(2024, 3, 9))

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.sell_date.date().isoformat() == "2024-03-09"

    def test_sell_edit_cannot_exceed_position(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")

        with pytest.raises(InsufficientHoldingsError):
            trade_service.update_trade(db, user.id, sell.id, quantity=Decimal("11"))

        db.refresh(sell)
        assert sell.quantity == Decimal("5")

    def test_buy_edit_cannot_strand_sales(self, db, trade_service, user):
        buy = _record(trade_service, db, user, BUY, "10", "100")
        _record(trade_service, db, user, SELL, "5", "120")

        with pytest.raises(InsufficientHoldingsError):
            trade_service.update_trade(db, user.id, buy.id, quantity=Decimal("4"))

    def test_buy_edit_leaves_profit_loss_as_recorded(self, db, trade_service, user):
        buy = _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")

        trade_service.update_trade(db, user.id, buy.id, price=Decimal("50"))

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record.profit_or_loss == Decimal("100.00")

    def test_status_only_edit(self, db, trade_service, user):
        buy = _record(trade_service, db, user, BUY, "10", "100")

        updated = trade_service.update_trade(db, user.id, buy.id, status=TradeStatus.CLOSED)

        assert updated.status == TradeStatus.CLOSED

    def test_sell_edit_without_record_aborts(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")
        db.delete(db.scalar(select(ProfitLoss)))
        db.commit()

        with pytest.raises(DerivedRecordInconsistencyError):
            trade_service.update_trade(db, user.id, sell.id, price=Decimal("200"))

        db.refresh(sell)
        assert sell.price == Decimal("120")

    def test_unknown_trade(self, db, trade_service, user):
        with pytest.raises(TradeNotFoundError):
            trade_service.update_trade(db, user.id, 999, price=Decimal("1"))


# =============================================================================
# DELETE
# =============================================================================

class TestDeleteTrade:

    def test_sell_delete_removes_profit_loss(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")

        trade_service.delete_trade(db, user.id, sell.id)

        assert _count(db, ProfitLoss) == 0
        assert _count(db, TradeEntry) == 1

    def test_buy_delete_leaves_profit_loss(self, db, trade_service, user):
        buy = _record(trade_service, db, user, BUY, "10", "100")
        _record(trade_service, db, user, SELL, "5", "120")

        trade_service.delete_trade(db, user.id, buy.id)

        assert _count(db, ProfitLoss) == 1
        assert _count(db, TradeEntry) == 1

    def test_sell_delete_without_record_aborts(self, db, trade_service, user):
        _record(trade_service, db, user, BUY, "10", "100")
        sell = _record(trade_service, db, user, SELL, "5", "120")
        db.delete(db.scalar(select(ProfitLoss)))
        db.commit()

        with pytest.raises(DerivedRecordInconsistencyError) as exc_info:
            trade_service.delete_trade(db, user.id, sell.id)

        assert exc_info.value.trade_id == sell.id
        assert _count(db, TradeEntry) == 2

    def test_sell_delete_aborts_when_record_cannot_be_removed(self, db, user):
        class FailingProfitLossDeleteStore(LedgerStore):
            def delete(self, db, record):
                if isinstance(record, ProfitLoss):
                    raise OperationalError("DELETE FROM profit_losses", {}, Exception("database is locked"))
                super().delete(db, record)

        service = _service_with(FailingProfitLossDeleteStore())
        _record(service, db, user, BUY, "10", "100")
        sell = _record(service, db, user, SELL, "5", "120")

        with pytest.raises(DerivedRecordInconsistencyError) as exc_info:
            service.delete_trade(db, user.id, sell.id)

        assert exc_info.value.trade_id == sell.id
        assert _count(db, TradeEntry) == 2
        assert _count(db, ProfitLoss) == 1

    def test_failed_trade_delete_restores_record(self, db, user):
        class FailingTradeDeleteStore(LedgerStore):
            def delete(self, db, record):
                if isinstance(record, TradeEntry):
                    raise OperationalError("DELETE FROM trade_entries", {}, Exception("database is locked"))
                super().delete(db, record)

        service = _service_with(FailingTradeDeleteStore())
        _record(service, db, user, BUY, "10", "100")
        sell = _record(service, db, user, SELL, "5", "120")

        with pytest.raises(PersistenceError):
            service.delete_trade(db, user.id, sell.id)

        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell.id))
        assert record is not None
        assert record.profit_or_loss == Decimal("100.00")
        assert _count(db, TradeEntry) == 2

    def test_delete_of_other_users_trade_not_found(self, db, trade_service, user):
        other = create_user(db, email="other@example.com")
        trade = _record(trade_service, db, other, BUY, "1", "100")

        with pytest.raises(TradeNotFoundError):
            trade_service.delete_trade(db, user.id, trade.id)


# =============================================================================
# CONCURRENCY
# =============================================================================

class TestConcurrentSells:

    def test_only_one_full_position_sell_succeeds(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'ledger.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        service = TradeService()

        with SessionLocal() as setup:
            user = create_user(setup)
            user_id = user.id
            _record(service, setup, user, BUY, "10", "100")

        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        outcomes_lock = threading.Lock()

        def sell_everything():
            with SessionLocal() as session:
                barrier.wait()
                try:
                    service.create_trade(
                        session,
                        user_id=user_id,
                        stock_symbol="AAPL",
                        transaction_type=SELL,
                        quantity=Decimal("10"),
                        price=Decimal("120"),
                        trade_date=utc(2024, 2, 1),
                    )
                    result = "sold"
                except InsufficientHoldingsError:
                    result = "rejected"
                with outcomes_lock:
                    outcomes.append(result)

        threads = [threading.Thread(target=sell_everything) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["rejected", "sold"]
        with SessionLocal() as check:
            assert _count(check, ProfitLoss) == 1
            assert _count(check, TradeEntry) == 2
        engine.dispose()
