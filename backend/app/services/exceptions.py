# backend/app/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer (global handlers in main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── InsufficientHoldingsError
    ├── NotFoundError
    │   ├── TradeNotFoundError
    │   └── UserNotFoundError
    ├── DerivedRecordInconsistencyError
    ├── PersistenceError
    ├── ComputationError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── TickerNotFoundError
    │   ├── RateLimitError
    │   └── UpstreamPriceUnavailableError
    └── AuthenticationError
        ├── InvalidCredentialsError
        └── TokenExpiredError
"""

from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails inside a service.

    Request body validation is done by Pydantic; this covers checks that
    need context (date ranges, unknown symbols, immutable fields).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InsufficientHoldingsError(ServiceError):
    """
    Raised when a sell would take a position below zero.

    Attributes:
        stock_symbol: Symbol being sold
        requested: Quantity the trade asks for
        available: Net quantity held by the other trades of the symbol
    """

    def __init__(
            self,
            stock_symbol: str,
            requested: Decimal,
            available: Decimal,
            message: str | None = None,
    ) -> None:
        self.stock_symbol = stock_symbol
        self.requested = requested
        self.available = available
        super().__init__(
            message or f"Cannot sell {requested} of {stock_symbol}: only {available} held"
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Trade")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class TradeNotFoundError(NotFoundError):
    """Raised when a trade does not exist or belongs to another user."""

    def __init__(self, trade_id: int) -> None:
        self.trade_id = trade_id
        super().__init__(
            f"Trade {trade_id} not found",
            resource_type="Trade",
            resource_id=trade_id,
        )


class UserNotFoundError(NotFoundError):
    """Raised when the user referenced by a valid token no longer exists."""

    def __init__(self, user_id: int) -> None:
        super().__init__(
            f"User {user_id} not found",
            resource_type="User",
            resource_id=user_id,
        )


# =============================================================================
# WRITE-PATH CONSISTENCY ERRORS
# =============================================================================


class DerivedRecordInconsistencyError(ServiceError):
    """
    Raised when a sell trade and its profit/loss record cannot be kept in step.

    Covers the compensation path on creation (the record could not be written,
    the trade was removed again) and the abort path on deletion/update (the
    record is missing or could not be removed, the trade was left untouched).

    Attributes:
        trade_id: The sell trade involved
        stock_symbol: Its symbol
    """

    def __init__(self, message: str, trade_id: int | None = None, stock_symbol: str | None = None) -> None:
        self.trade_id = trade_id
        self.stock_symbol = stock_symbol
        super().__init__(message)


class PersistenceError(ServiceError):
    """
    Raised when a write to the store fails.

    The message is safe to return to clients; the driver error is logged.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Could not {operation}. Please try again later.")


class TradeLockTimeoutError(ServiceError):
    """
    Raised when another write to the same position holds it for too long.

    Nothing was changed; the client may retry.
    """

    def __init__(self, user_id: int, stock_symbol: str, timeout: float) -> None:
        self.user_id = user_id
        self.stock_symbol = stock_symbol
        self.timeout = timeout
        super().__init__(
            f"Another change to {stock_symbol} is in progress. Please try again."
        )


class ComputationError(ServiceError):
    """Raised when a read-side aggregation cannot be computed."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Error calculating {operation}")


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable
    (network timeout, server errors, maintenance).

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when the provider does not know a symbol.

    This is NOT a retryable error.
    """

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"Ticker '{ticker}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


class UpstreamPriceUnavailableError(MarketDataError):
    """
    A current price could not be obtained for a symbol.

    Recovered inside MarketPriceService (the price counts as 0); never
    reaches an API client.
    """

    def __init__(self, symbol: str, reason: str) -> None:
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"No current price for '{symbol}': {reason}")


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for bearer token problems."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when a token is malformed, has a bad signature or wrong type."""


class TokenExpiredError(AuthenticationError):
    """
    Raised when a token is past its expiry.

    Attributes:
        token_type: Kind of token that expired
    """

    def __init__(self, message: str, token_type: str = "access") -> None:
        self.token_type = token_type
        super().__init__(message)


__all__ = [
    "ServiceError",
    "ValidationError",
    "InsufficientHoldingsError",
    "NotFoundError",
    "TradeNotFoundError",
    "UserNotFoundError",
    "DerivedRecordInconsistencyError",
    "PersistenceError",
    "ComputationError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "UpstreamPriceUnavailableError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenExpiredError",
]
