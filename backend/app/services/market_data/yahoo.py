# backend/app/services/market_data/yahoo.py
"""
Yahoo Finance price provider.

Implements MarketPriceProvider with the yfinance library. Symbols are
passed to Yahoo as stored on the trade (Yahoo's own notation, e.g. "AAPL",
"SAP.DE", "RELIANCE.NS").

Limitations:
- Rate limits (not officially documented, but exist)
- Quotes may be delayed 15-20 minutes for some markets
"""

import logging
import math
from decimal import Decimal
from typing import Any

import yfinance as yf

from app.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from app.services.market_data.base import MarketPriceProvider

logger = logging.getLogger(__name__)


class YahooFinanceProvider(MarketPriceProvider):
    """
    Yahoo Finance implementation of MarketPriceProvider.

    Retry Behavior (inherited from MarketPriceProvider):
        - Retries on ProviderUnavailableError and RateLimitError
        - Does NOT retry on TickerNotFoundError (permanent failure)
        - Exponential backoff, at most 3 attempts

    Example:
        provider = YahooFinanceProvider(timeout=15)
        price = provider.get_current_price("NVDA")
    """

    # Info keys holding a last price, in order of preference
    PRICE_FIELDS: tuple[str, ...] = ("regularMarketPrice", "currentPrice")

    def __init__(self, timeout: int = 10) -> None:
        """
        Args:
            timeout: Request timeout in seconds
        """
        self._timeout = timeout
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    def get_current_price(self, symbol: str) -> Decimal:
        """
        Fetch the latest price from Yahoo Finance.

        Raises:
            TickerNotFoundError: If Yahoo has no quote for the symbol
            ProviderUnavailableError: If Yahoo Finance is unavailable
            RateLimitError: If Yahoo throttles the request
        """
        return self._execute_with_retry(self._fetch_current_price, symbol)

    def symbol_exists(self, symbol: str) -> bool:
        """True if Yahoo returns meaningful info for the symbol."""
        try:
            self._execute_with_retry(self._fetch_info, symbol.strip())
        except TickerNotFoundError:
            return False
        return True

    def _fetch_current_price(self, symbol: str) -> Decimal:
        """Internal method to fetch a price (called by retry wrapper)."""
        symbol = symbol.strip()
        info = self._fetch_info(symbol)

        for field in self.PRICE_FIELDS:
            price = self._to_decimal(info.get(field))
            if price is not None:
                return price

        raise TickerNotFoundError(ticker=symbol, provider=self.name)

    def _fetch_info(self, symbol: str) -> dict:
        logger.debug(f"Fetching quote info for {symbol}")

        try:
            info = yf.Ticker(symbol).info
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str:
                raise TickerNotFoundError(ticker=symbol, provider=self.name)
            if "rate limit" in error_str or "too many requests" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {symbol}: {e}")
            raise ProviderUnavailableError(
                provider=self.name,
                reason=str(e),
            )

        if not self._is_valid_ticker_info(info):
            raise TickerNotFoundError(ticker=symbol, provider=self.name)
        return info

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _is_valid_ticker_info(self, info: dict | None) -> bool:
        """
        Check if Yahoo Finance info dict represents a valid ticker.

        Yahoo returns an info dict even for invalid tickers, but it lacks
        meaningful data. We check for price or name to validate.
        """
        if not info:
            return False
        return bool(
            info.get("regularMarketPrice")
            or info.get("currentPrice")
            or info.get("shortName")
            or info.get("longName")
        )

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/inf/None."""
        if value is None:
            return None
        try:
            if not math.isfinite(float(value)):
                return None
            return Decimal(str(value)).quantize(Decimal("0.00000001"))
        except (TypeError, ValueError):
            return None
