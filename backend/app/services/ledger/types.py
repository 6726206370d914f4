# backend/app/services/ledger/types.py
"""
Query parameter types shared by the ledger store and the read services.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from app.models import TransactionType
from app.services.exceptions import ValidationError


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive calendar-day range; either end may be open.

    DateRange(date(2024, 1, 1), date(2024, 1, 31)) covers every timestamp
    from 2024-01-01 00:00 UTC up to, but excluding, 2024-02-01 00:00 UTC.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ValidationError(
                f"start_date ({self.start}) must not be after end_date ({self.end})",
                field="start_date",
            )

    @property
    def is_open(self) -> bool:
        """True when neither bound is set."""
        return self.start is None and self.end is None

    def lower_bound(self) -> datetime | None:
        if self.start is None:
            return None
        return datetime.combine(self.start, time.min, tzinfo=timezone.utc)

    def upper_bound_exclusive(self) -> datetime | None:
        if self.end is None:
            return None
        return datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TradeFilters:
    """Optional filters for trade listings."""

    stock_symbol: str | None = None
    transaction_type: TransactionType | None = None
    date_range: DateRange | None = None
