# backend/app/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are process-wide singletons created lazily on first use. Sharing
them matters here: the trade service's lock registry must be the same
object for every request, and the price service owns the lookup thread
pool.

Usage in routers:
    from app.dependencies import get_trade_service, get_current_user

    @router.post("/")
    def create_trade(
        service: TradeService = Depends(get_trade_service),
        current_user: User = Depends(get_current_user),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models import User
from app.services.auth import JWTHandler
from app.services.exceptions import TokenExpiredError, InvalidCredentialsError
from app.services.holdings import HoldingsService
from app.services.ledger import LedgerStore
from app.services.locks import SymbolLockRegistry
from app.services.market_data import MarketPriceProvider, MarketPriceService, YahooFinanceProvider
from app.services.profit_loss import ProfitLossService, RealizedPnLRecorder
from app.services.trades import TradeService
from app.services.valuation import PortfolioValuationService

logger = logging.getLogger(__name__)

# auto_error=False so a missing header produces our own 401 body
_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_ledger_store, get_lock_registry, get_price_provider (no deps)
# 2. get_price_service (provider)
# 3. get_holdings_service, get_profit_loss_service (store)
# 4. get_trade_service (store, locks, price service)
# 5. get_valuation_service (holdings, price service)


@lru_cache(maxsize=1)
def get_ledger_store() -> LedgerStore:
    return LedgerStore()


@lru_cache(maxsize=1)
def get_lock_registry() -> SymbolLockRegistry:
    """One registry per process: every write path must see the same locks."""
    logger.debug("Initializing singleton SymbolLockRegistry")
    return SymbolLockRegistry(timeout=settings.trade_lock_timeout_seconds)


@lru_cache(maxsize=1)
def get_price_provider() -> MarketPriceProvider:
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(timeout=settings.yahoo_request_timeout)


@lru_cache(maxsize=1)
def get_price_service() -> MarketPriceService:
    """Shares the lookup pool across all requests."""
    logger.debug("Initializing singleton MarketPriceService")
    return MarketPriceService(
        provider=get_price_provider(),
        timeout=settings.market_price_timeout_seconds,
        max_workers=settings.market_price_max_workers,
    )


@lru_cache(maxsize=1)
def get_holdings_service() -> HoldingsService:
    return HoldingsService(store=get_ledger_store())


@lru_cache(maxsize=1)
def get_profit_loss_service() -> ProfitLossService:
    return ProfitLossService(store=get_ledger_store())


@lru_cache(maxsize=1)
def get_trade_service() -> TradeService:
    logger.debug("Initializing singleton TradeService")
    store = get_ledger_store()
    return TradeService(
        store=store,
        recorder=RealizedPnLRecorder(store),
        locks=get_lock_registry(),
        price_service=get_price_service(),
    )


@lru_cache(maxsize=1)
def get_valuation_service() -> PortfolioValuationService:
    logger.debug("Initializing singleton PortfolioValuationService")
    return PortfolioValuationService(
        holdings_service=get_holdings_service(),
        price_service=get_price_service(),
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Resolve the user from the bearer token.

    Raises:
        HTTPException 401: No token, invalid/expired token, unknown or
            inactive user
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        user_id = JWTHandler.user_id_from_token(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidCredentialsError as e:
        raise _unauthorized(str(e))

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("User account is inactive")

    return user


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Drop all singletons so the next call builds fresh ones.

    Used by tests; also shuts down the price lookup pool.
    """
    if get_price_service.cache_info().currsize:
        get_price_service().shutdown()

    get_ledger_store.cache_clear()
    get_lock_registry.cache_clear()
    get_price_provider.cache_clear()
    get_price_service.cache_clear()
    get_holdings_service.cache_clear()
    get_profit_loss_service.cache_clear()
    get_trade_service.cache_clear()
    get_valuation_service.cache_clear()
    logger.info("Cleared all service singleton caches")
