# backend/app/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Enum,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enum values are the strings clients send and see
class TransactionType(str, enum.Enum):
    BUY = "Buy"
    SELL = "Sell"


class TradeStatus(str, enum.Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class User(Base):
    """
    Account owning trades.

    Accounts are provisioned by the external auth service; this API only
    resolves them from the bearer token.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    trades: Mapped[list["TradeEntry"]] = relationship(back_populates="owner")


class TradeEntry(Base):
    """
    One executed buy or sell of a stock symbol.

    stock_symbol is stored as entered (trimmed, case preserved), so "aapl"
    and "AAPL" are different positions.
    """
    __tablename__ = "trade_entries"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_trade_quantity_positive"),
        CheckConstraint("price > 0", name="ck_trade_price_positive"),
        Index("ix_trade_entries_user_symbol", "user_id", "stock_symbol"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    stock_symbol: Mapped[str] = mapped_column(String, index=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e], name="transactiontype")
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    trade_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    status: Mapped[TradeStatus] = mapped_column(
        Enum(TradeStatus, values_callable=lambda e: [m.value for m in e], name="tradestatus"),
        default=TradeStatus.OPEN,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner: Mapped["User"] = relationship(back_populates="trades")

    @property
    def is_sell(self) -> bool:
        return self.transaction_type == TransactionType.SELL


class ProfitLoss(Base):
    """
    Realized profit or loss of one sell trade.

    Derived record: written right after its sell trade is stored and removed
    right before that trade is deleted. Never edited through the API.
    """
    __tablename__ = "profit_losses"
    __table_args__ = (
        Index("ix_profit_losses_user_sell_date", "user_id", "sell_date"),
        Index("ix_profit_losses_user_symbol", "user_id", "stock_symbol"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    stock_symbol: Mapped[str] = mapped_column(String)
    sell_trade_id: Mapped[int] = mapped_column(ForeignKey("trade_entries.id"), unique=True)
    sell_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    sell_price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    sell_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    average_purchase_price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    profit_or_loss: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
