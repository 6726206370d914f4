# backend/app/services/holdings/types.py
"""
Internal data types for the holdings and cost-basis calculators.

These dataclasses are NOT Pydantic schemas; the API representations live in
app/schemas/valuation.py.

Type Hierarchy:
    PositionTotals  - Running sums for one symbol (mutable accumulator)
    CostBasis       - Net quantity + weighted average price
    Holding         - CostBasis labelled with its symbol
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from app.models import TransactionType
from app.services.constants import ZERO, PRICE_QUANT


class TradeLike(Protocol):
    """Anything carrying the four fields the folds read."""

    stock_symbol: str
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal


@dataclass
class PositionTotals:
    """
    Running sums for one (user, symbol) pair.

    Both the single-symbol calculator and the grouped holdings pass fold
    trades through this accumulator, so they cannot disagree.
    """

    bought_quantity: Decimal = ZERO
    bought_cost: Decimal = ZERO
    sold_quantity: Decimal = ZERO

    def add(self, trade: TradeLike) -> None:
        quantity = Decimal(trade.quantity)
        if trade.transaction_type == TransactionType.BUY:
            self.bought_quantity += quantity
            self.bought_cost += quantity * Decimal(trade.price)
        else:
            self.sold_quantity += quantity

    def to_cost_basis(self) -> CostBasis:
        if self.bought_quantity == ZERO:
            average = ZERO
        else:
            average = (self.bought_cost / self.bought_quantity).quantize(PRICE_QUANT)
        return CostBasis(
            total_quantity=self.bought_quantity - self.sold_quantity,
            average_purchase_price=average,
        )


@dataclass(frozen=True)
class CostBasis:
    """
    Net position and all-time weighted average purchase price.

    Attributes:
        total_quantity: sum of bought minus sum of sold quantity
        average_purchase_price: quantity-weighted mean Buy price (0 without buys)
    """

    total_quantity: Decimal
    average_purchase_price: Decimal

    @property
    def is_open(self) -> bool:
        return self.total_quantity > ZERO


@dataclass(frozen=True)
class Holding:
    """Cost basis of one symbol."""

    stock_symbol: str
    total_quantity: Decimal
    average_purchase_price: Decimal

    @property
    def is_open(self) -> bool:
        """True if shares are currently held."""
        return self.total_quantity > ZERO

    @property
    def invested(self) -> Decimal:
        """Average price times quantity held (unrounded)."""
        return self.average_purchase_price * self.total_quantity
