# backend/app/routers/holdings.py
"""
Holdings and unrealized P&L endpoints.

- /holdings/                    open positions (no prices needed)
- /holdings/invested            total invested (no prices needed)
- /holdings/pnl                 per-symbol unrealized P&L
- /holdings/total-pnl           total unrealized P&L
- /holdings/percentage-change   portfolio change in percent
- /holdings/valuation           all of the above in one response

Price-based endpoints query Yahoo Finance for every open symbol. A symbol
whose quote cannot be fetched in time is valued at 0 instead of failing
the request.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_holdings_service, get_valuation_service
from app.middleware import limiter, RATE_LIMIT_DEFAULT, RATE_LIMIT_MARKET
from app.models import User
from app.schemas.valuation import (
    HoldingResponse,
    HoldingsPnLResponse,
    HoldingsResponse,
    HoldingValuationResponse,
    PercentageChangeResponse,
    PortfolioValuationResponse,
    TotalInvestedResponse,
    TotalPnLResponse,
)
from app.services.holdings import HoldingsService
from app.services.valuation import PortfolioValuationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/holdings",
    tags=["Holdings"],
)


@router.get("/", response_model=HoldingsResponse, summary="Open positions")
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_holdings(
        request: Request,  # Required for rate limiting
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: HoldingsService = Depends(get_holdings_service),
) -> HoldingsResponse:
    """Net quantity and average purchase price per symbol still held."""
    holdings = service.get_holdings(db, current_user.id)
    return HoldingsResponse(holdings=[HoldingResponse.model_validate(h) for h in holdings])


@router.get("/invested", response_model=TotalInvestedResponse, summary="Total invested")
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_total_invested(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioValuationService = Depends(get_valuation_service),
) -> TotalInvestedResponse:
    return TotalInvestedResponse(total_invested=service.get_total_invested(db, current_user.id))


@router.get("/pnl", response_model=HoldingsPnLResponse, summary="Unrealized P&L per symbol")
@limiter.limit(RATE_LIMIT_MARKET)
def get_holdings_pnl(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioValuationService = Depends(get_valuation_service),
) -> HoldingsPnLResponse:
    rows = service.get_holdings_pnl(db, current_user.id)
    return HoldingsPnLResponse(holdings=[HoldingValuationResponse.model_validate(r) for r in rows])


@router.get("/total-pnl", response_model=TotalPnLResponse, summary="Total unrealized P&L")
@limiter.limit(RATE_LIMIT_MARKET)
def get_total_pnl(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioValuationService = Depends(get_valuation_service),
) -> TotalPnLResponse:
    return TotalPnLResponse(total_pnl=service.get_total_pnl(db, current_user.id))


@router.get(
    "/percentage-change",
    response_model=PercentageChangeResponse,
    summary="Portfolio percentage change",
)
@limiter.limit(RATE_LIMIT_MARKET)
def get_percentage_change(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioValuationService = Depends(get_valuation_service),
) -> PercentageChangeResponse:
    """(market value - invested) / invested × 100; 0 when nothing is invested."""
    return PercentageChangeResponse(
        percentage_change=service.get_percentage_change(db, current_user.id)
    )


@router.get(
    "/valuation",
    response_model=PortfolioValuationResponse,
    summary="Portfolio valuation",
)
@limiter.limit(RATE_LIMIT_MARKET)
def get_portfolio_valuation(
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: PortfolioValuationService = Depends(get_valuation_service),
) -> PortfolioValuationResponse:
    """Totals plus the per-symbol breakdown, priced in one parallel batch."""
    valuation = service.get_portfolio_valuation(db, current_user.id)
    return PortfolioValuationResponse.model_validate(valuation)
