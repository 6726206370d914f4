# backend/app/services/ledger/__init__.py
"""Trade and profit/loss persistence access."""

from app.services.ledger.store import LedgerStore
from app.services.ledger.types import DateRange, TradeFilters

__all__ = [
    "LedgerStore",
    "DateRange",
    "TradeFilters",
]
