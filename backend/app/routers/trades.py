# backend/app/routers/trades.py
"""
Trade entry endpoints.

Record, edit, delete and list the buy/sell trades of the signed-in user.

Key rules:
- A Sell may not exceed the quantity currently held for its symbol
- Storing a Sell also records its realized profit/loss; deleting it
  removes that record first
- stock_symbol and transaction_type cannot be changed after creation

All endpoints require authentication. Users only ever see their own trades;
another user's trade id answers 404.
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import AfterValidator
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_trade_service
from app.middleware import limiter, RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE
from app.models import TransactionType, User
from app.schemas.pagination import PaginationMeta
from app.schemas.trades import (
    TradeCreate,
    TradeListResponse,
    TradeResponse,
    TradeUpdate,
)
from app.schemas.validators import validate_symbol_query
from app.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from app.services.ledger import DateRange, TradeFilters
from app.services.trades import TradeService

logger = logging.getLogger(__name__)

SymbolQuery = Annotated[str | None, AfterValidator(validate_symbol_query)]

router = APIRouter(
    prefix="/trades",
    tags=["Trades"],
)


@router.post(
    "/",
    response_model=TradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a trade",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_trade(
        request: Request,  # Required for rate limiting
        trade_in: TradeCreate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: TradeService = Depends(get_trade_service),
):
    """
    Record a Buy or Sell.

    Raises **400** if a Sell exceeds the quantity held and **409** if the
    realized profit/loss of a Sell could not be recorded (the trade is then
    not kept).
    """
    return service.create_trade(
        db,
        user_id=current_user.id,
        stock_symbol=trade_in.stock_symbol,
        transaction_type=trade_in.transaction_type,
        quantity=trade_in.quantity,
        price=trade_in.price,
        trade_date=trade_in.trade_date,
        status=trade_in.status,
    )


@router.get(
    "/",
    response_model=TradeListResponse,
    summary="List trades",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_trades(
        request: Request,
        stock_symbol: SymbolQuery = Query(default=None, description="Only this symbol"),
        transaction_type: TransactionType | None = Query(default=None),
        start_date: date | None = Query(default=None, description="First trade day (inclusive)"),
        end_date: date | None = Query(default=None, description="Last trade day (inclusive)"),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: TradeService = Depends(get_trade_service),
) -> TradeListResponse:
    """Trades of the current user, newest first (trade history report)."""
    filters = TradeFilters(
        stock_symbol=stock_symbol,
        transaction_type=transaction_type,
        date_range=DateRange(start_date, end_date),
    )
    items, total = service.list_trades(db, current_user.id, filters, skip=skip, limit=limit)
    return TradeListResponse(
        items=[TradeResponse.model_validate(t) for t in items],
        pagination=PaginationMeta.create(total=total, skip=skip, limit=limit),
    )


@router.get(
    "/{trade_id}",
    response_model=TradeResponse,
    summary="Get a trade",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_trade(
        request: Request,
        trade_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: TradeService = Depends(get_trade_service),
):
    return service.get_trade(db, current_user.id, trade_id)


@router.patch(
    "/{trade_id}",
    response_model=TradeResponse,
    summary="Edit a trade",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_trade(
        request: Request,
        trade_id: int,
        trade_in: TradeUpdate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: TradeService = Depends(get_trade_service),
):
    """
    Change quantity, price, trade_date or status.

    Editing a Sell recalculates its realized profit/loss. Raises **400** if
    the edit would sell more than is held.
    """
    return service.update_trade(
        db,
        user_id=current_user.id,
        trade_id=trade_id,
        **trade_in.model_dump(exclude_unset=True),
    )


@router.delete(
    "/{trade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a trade",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_trade(
        request: Request,
        trade_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        service: TradeService = Depends(get_trade_service),
) -> Response:
    """
    Delete a trade. Deleting a Sell also removes its profit/loss record.

    Raises **409** if that record is missing; the trade is then kept.
    """
    service.delete_trade(db, current_user.id, trade_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
