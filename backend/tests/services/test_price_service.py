# backend/tests/services/test_price_service.py
"""
Tests for MarketPriceService: parallel lookups, timeout and zero fallback.
"""

import time
from decimal import Decimal
from unittest.mock import MagicMock, PropertyMock, patch

from app.services.exceptions import ProviderUnavailableError, TickerNotFoundError
from app.services.market_data import MarketPriceService, YahooFinanceProvider


class TestGetStockPrices:

    def test_prices_for_every_symbol(self, price_service, mock_provider):
        mock_provider.set_price("AAPL", "190.12")
        mock_provider.set_price("MSFT", "410")

        prices = price_service.get_stock_prices(["AAPL", "MSFT", "AAPL"])

        assert prices == {"AAPL": Decimal("190.12"), "MSFT": Decimal("410")}
        assert sorted(mock_provider.calls) == ["AAPL", "MSFT"]

    def test_empty_request(self, price_service, mock_provider):
        assert price_service.get_stock_prices([]) == {}
        assert mock_provider.calls == []

    def test_unknown_symbol_is_zero(self, price_service):
        assert price_service.get_stock_price("NOPE") == Decimal("0")

    def test_provider_error_is_zero(self, price_service, mock_provider):
        mock_provider.set_price("AAPL", "190")
        mock_provider.set_error("MSFT", ProviderUnavailableError("mock", "connection reset"))

        prices = price_service.get_stock_prices(["AAPL", "MSFT"])

        assert prices == {"AAPL": Decimal("190"), "MSFT": Decimal("0")}

    def test_unexpected_provider_exception_is_zero(self, price_service, mock_provider):
        mock_provider.set_price("MSFT", "410")
        mock_provider.set_error("AAPL", RuntimeError("boom"))

        prices = price_service.get_stock_prices(["AAPL", "MSFT"])

        assert prices == {"AAPL": Decimal("0"), "MSFT": Decimal("410")}
        assert price_service.get_stats()["fallbacks"] == 1

    def test_infinite_yahoo_quote_is_zero(self):
        ticker = MagicMock()
        type(ticker).info = PropertyMock(
            return_value={"regularMarketPrice": float("inf"), "shortName": "X"}
        )
        service = MarketPriceService(YahooFinanceProvider(), timeout=1.0, max_workers=1)
        try:
            with patch("app.services.market_data.yahoo.yf.Ticker", return_value=ticker):
                price = service.get_stock_price("AAPL")
        finally:
            service.shutdown()

        assert price == Decimal("0")

    def test_slow_lookup_is_zero_within_timeout(self, mock_provider):
        service = MarketPriceService(mock_provider, timeout=0.1, max_workers=2)
        mock_provider.set_price("SLOW", "50")
        mock_provider.set_delay("SLOW", 1.0)
        mock_provider.set_price("FAST", "10")
        try:
            started = time.monotonic()
            prices = service.get_stock_prices(["SLOW", "FAST"])
            elapsed = time.monotonic() - started
        finally:
            service.shutdown()

        assert prices == {"SLOW": Decimal("0"), "FAST": Decimal("10")}
        assert elapsed < 0.9

    def test_negative_price_clamped(self, price_service, mock_provider):
        mock_provider.set_price("ODD", "-3")

        assert price_service.get_stock_price("ODD") == Decimal("0")


class TestSymbolExists:

    def test_known_and_unknown(self, price_service, mock_provider):
        mock_provider.set_price("AAPL", "190")

        assert price_service.symbol_exists("AAPL") is True
        assert price_service.symbol_exists("NOPE") is False

    def test_outage_counts_as_known(self, price_service, mock_provider):
        mock_provider.set_error("AAPL", ProviderUnavailableError("mock", "down"))

        assert price_service.symbol_exists("AAPL") is True

    def test_not_found_error(self, price_service, mock_provider):
        mock_provider.set_error("GONE", TickerNotFoundError("GONE", "mock"))

        assert price_service.symbol_exists("GONE") is False


class TestStats:

    def test_counts_lookups_and_fallbacks(self, price_service, mock_provider):
        mock_provider.set_price("AAPL", "190")
        price_service.get_stock_prices(["AAPL", "NOPE"])

        stats = price_service.get_stats()

        assert stats["provider"] == "mock"
        assert stats["available"] is True
        assert stats["lookups"] == 2
        assert stats["fallbacks"] == 1
        assert stats["timeout_seconds"] == 0.5

    def test_reports_provider_availability(self, price_service, mock_provider):
        mock_provider.set_available(False)

        assert price_service.get_stats()["available"] is False
