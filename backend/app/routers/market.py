# backend/app/routers/market.py
"""
Market price lookup.

Returns the latest Yahoo Finance price for a symbol, or 0 when no quote
can be obtained within the configured timeout.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request

from app.dependencies import get_current_user, get_price_service
from app.middleware import limiter, RATE_LIMIT_MARKET
from app.models import User
from app.schemas.market_data import StockPriceResponse
from app.schemas.validators import SYMBOL_MAX_LENGTH, validate_stock_symbol
from app.services.exceptions import ValidationError
from app.services.market_data import MarketPriceService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/market",
    tags=["Market"],
)


@router.get(
    "/price/{symbol}",
    response_model=StockPriceResponse,
    summary="Current price of a symbol",
)
@limiter.limit(RATE_LIMIT_MARKET)
def get_stock_price(
        request: Request,  # Required for rate limiting
        symbol: str = Path(..., min_length=1, max_length=SYMBOL_MAX_LENGTH),
        current_user: User = Depends(get_current_user),
        service: MarketPriceService = Depends(get_price_service),
) -> StockPriceResponse:
    try:
        symbol = validate_stock_symbol(symbol)
    except ValueError as e:
        raise ValidationError(str(e), field="symbol")

    return StockPriceResponse(stock_symbol=symbol, price=service.get_stock_price(symbol))
