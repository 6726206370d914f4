# backend/app/routers/profit_loss.py
"""
Realized profit and loss endpoints.

All figures come from the profit/loss records written when sell trades
were stored. Optional `start_date` / `end_date` (YYYY-MM-DD) filter on the
sell date and include both days; start after end answers 400.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_profit_loss_service
from app.middleware import limiter, RATE_LIMIT_DEFAULT
from app.models import User
from app.schemas.profit_loss import (
    CumulativeProfitLossResponse,
    DailyProfitLossSeriesResponse,
    NetProfitLossResponse,
    ProfitLossRecordListResponse,
    ProfitLossRecordResponse,
    SymbolProfitLossListResponse,
    SymbolProfitLossResponse,
)
from app.services.ledger import DateRange
from app.services.profit_loss import ProfitLossService, ProfitLossVariant

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/profit-loss",
    tags=["Profit & Loss"],
)


def get_date_range(
        start_date: date | None = Query(default=None, description="First sell day (inclusive)"),
        end_date: date | None = Query(default=None, description="Last sell day (inclusive)"),
) -> DateRange:
    """Query parameters shared by every endpoint of this router."""
    return DateRange(start_date, end_date)


@router.get(
    "/summary",
    response_model=CumulativeProfitLossResponse | NetProfitLossResponse,
    summary="Cumulative realized P&L",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_cumulative_profit_loss(
        request: Request,  # Required for rate limiting
        variant: ProfitLossVariant = Query(
            default=ProfitLossVariant.BREAKDOWN,
            description="breakdown: profit, loss and net; net: one signed total",
        ),
        date_range: DateRange = Depends(get_date_range),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: ProfitLossService = Depends(get_profit_loss_service),
):
    result = service.get_cumulative_profit_loss(db, current_user.id, date_range, variant)
    if variant == ProfitLossVariant.NET:
        return NetProfitLossResponse.model_validate(result)
    return CumulativeProfitLossResponse.model_validate(result)


@router.get(
    "/symbols",
    response_model=SymbolProfitLossListResponse,
    summary="Realized P&L per symbol",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_symbol_wise_profit_loss(
        request: Request,
        date_range: DateRange = Depends(get_date_range),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: ProfitLossService = Depends(get_profit_loss_service),
) -> SymbolProfitLossListResponse:
    rows = service.get_symbol_wise_profit_loss(db, current_user.id, date_range)
    return SymbolProfitLossListResponse(
        items=[SymbolProfitLossResponse.model_validate(r) for r in rows]
    )


@router.get(
    "/daily",
    response_model=DailyProfitLossSeriesResponse,
    summary="Realized P&L per day",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_daily_profit_loss(
        request: Request,
        date_range: DateRange = Depends(get_date_range),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: ProfitLossService = Depends(get_profit_loss_service),
) -> DailyProfitLossSeriesResponse:
    """Net realized result per sell date, oldest first, plus the period total."""
    series = service.get_daily_profit_loss(db, current_user.id, date_range)
    return DailyProfitLossSeriesResponse.model_validate(series)


@router.get(
    "/records",
    response_model=ProfitLossRecordListResponse,
    summary="Realized P&L records",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_profit_loss_records(
        request: Request,
        date_range: DateRange = Depends(get_date_range),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: ProfitLossService = Depends(get_profit_loss_service),
) -> ProfitLossRecordListResponse:
    """One record per sell trade, newest sale first."""
    records = service.list_records(db, current_user.id, date_range)
    return ProfitLossRecordListResponse(
        items=[ProfitLossRecordResponse.model_validate(r) for r in records]
    )
