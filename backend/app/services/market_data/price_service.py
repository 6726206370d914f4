# backend/app/services/market_data/price_service.py
"""
Current-price lookups with a bounded wait and a zero fallback.

Valuation must always produce a number, so a symbol whose price cannot be
fetched in time counts as 0 instead of failing the request. Lookups for
several symbols run side by side on a shared thread pool; the whole batch
waits at most `timeout` seconds.

Usage:
    service = MarketPriceService(YahooFinanceProvider(), timeout=5.0)
    prices = service.get_stock_prices(["AAPL", "MSFT"])
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, Future, wait
from decimal import Decimal

from app.services.constants import ZERO
from app.services.exceptions import (
    MarketDataError,
    TickerNotFoundError,
    UpstreamPriceUnavailableError,
)
from app.services.market_data.base import MarketPriceProvider

logger = logging.getLogger(__name__)


class MarketPriceService:
    """
    Parallel price lookups over a MarketPriceProvider.

    Args:
        provider: Source of current prices
        timeout: Seconds to wait for one lookup or one batch
        max_workers: Size of the shared lookup pool
    """

    def __init__(
            self,
            provider: MarketPriceProvider,
            timeout: float = 5.0,
            max_workers: int = 8,
    ) -> None:
        self._provider = provider
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="price-lookup",
        )
        self._stats_lock = threading.Lock()
        self._lookups = 0
        self._fallbacks = 0

    @property
    def provider_name(self) -> str:
        return self._provider.name

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_stock_price(self, symbol: str) -> Decimal:
        """Current price of one symbol, 0 when it cannot be obtained in time."""
        return self.get_stock_prices([symbol]).get(symbol, ZERO)

    def get_stock_prices(self, symbols: list[str]) -> dict[str, Decimal]:
        """
        Current prices for several symbols, fetched concurrently.

        Every requested symbol appears in the result. Failed or timed-out
        lookups yield 0; negative quotes are clamped to 0.
        """
        unique = list(dict.fromkeys(symbols))
        if not unique:
            return {}

        futures: dict[str, Future] = {
            symbol: self._executor.submit(self._provider.get_current_price, symbol)
            for symbol in unique
        }
        wait(futures.values(), timeout=self._timeout)

        prices: dict[str, Decimal] = {}
        for symbol, future in futures.items():
            prices[symbol] = self._resolve(symbol, future)
        return prices

    def symbol_exists(self, symbol: str) -> bool:
        """
        Ask the provider whether it knows the symbol.

        Provider outages do not block trading: anything but a definite
        "not found" counts as known.
        """
        try:
            return self._provider.symbol_exists(symbol)
        except TickerNotFoundError:
            return False
        except MarketDataError as e:
            logger.warning(f"Could not verify symbol {symbol} with {self.provider_name}: {e}")
            return True

    def _resolve(self, symbol: str, future: Future) -> Decimal:
        if not future.done():
            future.cancel()
            return self._fallback(
                UpstreamPriceUnavailableError(symbol, f"no answer within {self._timeout}s")
            )

        try:
            price = future.result()
        except MarketDataError as e:
            return self._fallback(UpstreamPriceUnavailableError(symbol, str(e)))
        except Exception as e:
            logger.exception(f"Unexpected error fetching price for {symbol} from {self.provider_name}")
            return self._fallback(UpstreamPriceUnavailableError(symbol, str(e)))

        self._count(fallback=False)
        if price < ZERO:
            logger.warning(f"Provider returned negative price {price} for {symbol}; using 0")
            return ZERO
        return Decimal(price)

    def _fallback(self, error: UpstreamPriceUnavailableError) -> Decimal:
        self._count(fallback=True)
        logger.warning(f"{error}; using 0")
        return ZERO

    # =========================================================================
    # HEALTH / STATS
    # =========================================================================

    def _count(self, fallback: bool) -> None:
        with self._stats_lock:
            self._lookups += 1
            if fallback:
                self._fallbacks += 1

    def get_stats(self) -> dict:
        """Lookup counters for the health endpoint."""
        with self._stats_lock:
            return {
                "provider": self.provider_name,
                "available": self._provider.is_available(),
                "lookups": self._lookups,
                "fallbacks": self._fallbacks,
                "timeout_seconds": self._timeout,
            }

    def shutdown(self) -> None:
        """Stop the lookup pool (application shutdown)."""
        self._executor.shutdown(wait=False, cancel_futures=True)
