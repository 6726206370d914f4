# backend/app/services/market_data/base.py
"""
Abstract interface for current-price providers.

Services depend on MarketPriceProvider, never on a concrete source, so
tests can plug in a mock and another quote source can replace Yahoo
without touching valuation code.

Retry logic for transient failures lives here once, in
`_execute_with_retry`, and is shared by every provider.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    TickerNotFoundError,
)

logger = logging.getLogger(__name__)

# Type variable for generic return type in retry method
T = TypeVar('T')


class MarketPriceProvider(ABC):
    """
    Abstract base class for current-price providers.

    Retry Behavior:
        `_execute_with_retry` retries with exponential backoff. Subclasses can
        tune it through class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: API rate limit exceeded

    Non-Retryable Exceptions:
        - TickerNotFoundError: Permanent failure (symbol doesn't exist)
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages (e.g. "yahoo")."""
        pass

    @abstractmethod
    def get_current_price(self, symbol: str) -> Decimal:
        """
        Latest traded price of a symbol.

        Raises:
            TickerNotFoundError: Unknown symbol
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    def symbol_exists(self, symbol: str) -> bool:
        """
        Whether the provider knows the symbol.

        Default implementation asks for a price. Only TickerNotFoundError
        means "no"; other provider errors propagate.
        """
        try:
            self.get_current_price(symbol)
        except TickerNotFoundError:
            return False
        return True

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError and RateLimitError with exponential
        backoff; everything else (including TickerNotFoundError) is raised
        on the first attempt.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    def is_available(self) -> bool:
        """Health hook; providers may override with a real check."""
        return True
