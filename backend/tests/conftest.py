# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock price provider and price service
- Service fixtures wired the way app.dependencies wires them
- An API client with the database and price source overridden
- Sample data factories
"""

import os

# Must be set before app.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")

import threading
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.dependencies import (
    clear_service_caches,
    get_holdings_service,
    get_price_service,
    get_profit_loss_service,
    get_trade_service,
    get_valuation_service,
)
from app.main import app
from app.middleware import limiter
from app.models import Base, TradeEntry, TransactionType, User
from app.services.auth import JWTHandler
from app.services.exceptions import TickerNotFoundError
from app.services.holdings import HoldingsService
from app.services.ledger import LedgerStore
from app.services.locks import SymbolLockRegistry
from app.services.market_data import MarketPriceProvider, MarketPriceService
from app.services.profit_loss import ProfitLossService, RealizedPnLRecorder
from app.services.trades import TradeService
from app.services.valuation import PortfolioValuationService


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK PRICE PROVIDER
# =============================================================================

class MockPriceProvider(MarketPriceProvider):
    """
    Mock implementation of MarketPriceProvider for testing.

    Prices, errors and artificial delays are configured per symbol.
    Unknown symbols raise TickerNotFoundError.
    """

    def __init__(self):
        self._prices: dict[str, Decimal] = {}
        self._errors: dict[str, Exception] = {}
        self._delays: dict[str, float] = {}
        self._available = True
        self._lock = threading.Lock()
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_price(self, symbol: str, price: Decimal | str) -> None:
        self._prices[symbol] = Decimal(price)

    def set_error(self, symbol: str, error: Exception) -> None:
        self._errors[symbol] = error

    def set_delay(self, symbol: str, seconds: float) -> None:
        self._delays[symbol] = seconds

    def set_available(self, available: bool) -> None:
        self._available = available

    def get_current_price(self, symbol: str) -> Decimal:
        with self._lock:
            self.calls.append(symbol)

        if symbol in self._delays:
            time.sleep(self._delays[symbol])
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol in self._prices:
            return self._prices[symbol]
        raise TickerNotFoundError(ticker=symbol, provider=self.name)

    def is_available(self) -> bool:
        return self._available


@pytest.fixture
def mock_provider() -> MockPriceProvider:
    """Create a fresh mock provider for each test."""
    return MockPriceProvider()


@pytest.fixture
def price_service(mock_provider: MockPriceProvider) -> Iterator[MarketPriceService]:
    """Price service over the mock provider with a short batch timeout."""
    service = MarketPriceService(mock_provider, timeout=0.5, max_workers=4)
    yield service
    service.shutdown()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def ledger_store() -> LedgerStore:
    return LedgerStore()


@pytest.fixture
def trade_service(ledger_store: LedgerStore) -> TradeService:
    return TradeService(
        store=ledger_store,
        recorder=RealizedPnLRecorder(ledger_store),
        locks=SymbolLockRegistry(),
    )


@pytest.fixture
def holdings_service(ledger_store: LedgerStore) -> HoldingsService:
    return HoldingsService(store=ledger_store)


@pytest.fixture
def profit_loss_service(ledger_store: LedgerStore) -> ProfitLossService:
    return ProfitLossService(store=ledger_store)


@pytest.fixture
def valuation_service(
        holdings_service: HoldingsService,
        price_service: MarketPriceService,
) -> PortfolioValuationService:
    return PortfolioValuationService(holdings_service, price_service)


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process-wide; start every test from zero."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(
        db: Session,
        trade_service: TradeService,
        holdings_service: HoldingsService,
        profit_loss_service: ProfitLossService,
        valuation_service: PortfolioValuationService,
        price_service: MarketPriceService,
) -> Iterator[TestClient]:
    """TestClient sharing the test session and the mock price source."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_trade_service] = lambda: trade_service
    app.dependency_overrides[get_holdings_service] = lambda: holdings_service
    app.dependency_overrides[get_profit_loss_service] = lambda: profit_loss_service
    app.dependency_overrides[get_valuation_service] = lambda: valuation_service
    app.dependency_overrides[get_price_service] = lambda: price_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    clear_service_caches()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def utc(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    """Aware UTC timestamp shorthand."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def create_user(
        db: Session,
        email: str = "test@example.com",
        is_active: bool = True,
) -> User:
    """Factory function for creating User entities in the database."""
    user = User(email=email, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_trade(
        db: Session,
        user: User,
        stock_symbol: str = "AAPL",
        transaction_type: TransactionType = TransactionType.BUY,
        quantity: Decimal | str = "10",
        price: Decimal | str = "100",
        trade_date: datetime | None = None,
        service: TradeService | None = None,
) -> TradeEntry:
    """Record a trade through TradeService (sells get their ProfitLoss row)."""
    service = service or TradeService()
    return service.create_trade(
        db,
        user_id=user.id,
        stock_symbol=stock_symbol,
        transaction_type=transaction_type,
        quantity=Decimal(quantity),
        price=Decimal(price),
        trade_date=trade_date or utc(2024, 1, 15),
    )


def auth_headers_for(user: User) -> dict[str, str]:
    """Bearer header carrying a fresh access token for the user."""
    token = JWTHandler.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# FIXTURE EXPORTS (for convenience imports in tests)
# =============================================================================

@pytest.fixture
def sample_user(db: Session) -> User:
    """Provide a sample User for tests."""
    return create_user(db)


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    """Authorization header for sample_user."""
    return auth_headers_for(sample_user)
