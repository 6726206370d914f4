# backend/app/schemas/trades.py
"""
Pydantic schemas for trade entries.

These schemas define:
- What data clients must send (Create)
- What data clients can update (Update)
- What data the API returns (Response)

Validation layers:
- Field constraints: type, numeric limits
- Field validators: symbol trimming, UTC normalization of trade_date
- Service: holdings checks, existence, ownership

IMPORTANT: All financial values use Decimal for precision.
Never use float for money!
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models import TradeStatus, TransactionType
from app.schemas.pagination import PaginationMeta
from app.schemas.validators import to_utc, validate_stock_symbol


# =============================================================================
# BASE SCHEMA
# =============================================================================

class TradeBase(BaseModel):
    """Fields common to Create and Response."""

    stock_symbol: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="Symbol as quoted by Yahoo Finance (case preserved)",
        examples=["AAPL", "SAP.DE", "RELIANCE.NS"]
    )

    transaction_type: TransactionType = Field(
        ...,
        description="Buy or Sell",
        examples=[TransactionType.BUY, TransactionType.SELL]
    )

    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Number of shares traded (must be positive)",
        examples=["10", "0.5"]
    )

    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Price per share (must be positive)",
        examples=["150.50"]
    )

    trade_date: datetime = Field(
        ...,
        description="When the trade was executed (naive values are read as UTC)",
        examples=["2024-07-03T14:30:00Z"]
    )

    status: TradeStatus = Field(
        default=TradeStatus.OPEN,
        description="Open or Closed (informational)",
    )


# =============================================================================
# CREATE SCHEMA
# =============================================================================

class TradeCreate(TradeBase):
    """
    Schema for recording a trade.

    stock_symbol and transaction_type cannot be changed after creation.
    """

    @field_validator('stock_symbol', mode='before')
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Trim and validate the stock symbol."""
        if not isinstance(v, str):
            raise ValueError("Stock symbol must be a string")
        return validate_stock_symbol(v)

    @field_validator('trade_date')
    @classmethod
    def normalize_trade_date(cls, v: datetime) -> datetime:
        return to_utc(v)


# =============================================================================
# UPDATE SCHEMA
# =============================================================================

class TradeUpdate(BaseModel):
    """
    Schema for editing a trade.

    All fields are optional; the client only sends what changes.

    Note: stock_symbol and transaction_type CANNOT be changed.
    To change these, delete the trade and record a new one.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Corrected quantity"
    )

    price: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Corrected price per share"
    )

    trade_date: datetime | None = Field(
        default=None,
        description="Corrected trade date"
    )

    status: TradeStatus | None = Field(default=None)

    @field_validator('trade_date')
    @classmethod
    def normalize_trade_date(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        return to_utc(v)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class TradeResponse(TradeBase):
    """A stored trade as returned by the API."""

    id: int = Field(..., description="Unique identifier")
    user_id: int = Field(..., description="Owner of the trade")
    created_at: datetime = Field(..., description="When the trade was recorded")
    updated_at: datetime = Field(..., description="Last edit")

    model_config = ConfigDict(from_attributes=True)


class TradeListResponse(BaseModel):
    """
    Response schema for paginated trade list.

    Attributes:
        items: Trades for the current page, newest first
        pagination: Pagination metadata with computed fields
    """

    items: list[TradeResponse] = Field(..., description="Trades for current page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")
