# tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

from app.utils.context import (
    clear_correlation_id,
    clear_request_context,
    get_correlation_id,
    get_request_path,
    set_correlation_id,
    set_request_path,
)


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_request_path(self):
        set_request_path("POST", "/trades/")
        assert get_request_path() == "POST /trades/"

    def test_clear_request_context(self):
        set_correlation_id("abc")
        set_request_path("GET", "/holdings/")

        clear_request_context()

        assert get_correlation_id() is None
        assert get_request_path() is None


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generates_correlation_id_when_not_provided(self, client):
        """Should generate correlation ID when not provided in request."""
        response = client.get("/health/live")

        assert response.status_code == 200
        correlation_id = response.headers["X-Correlation-ID"]
        assert len(correlation_id) == 36  # UUID length
        assert correlation_id.count("-") == 4

    def test_uses_provided_correlation_id(self, client):
        """Should use correlation ID from request header."""
        response = client.get("/health/live", headers={"X-Correlation-ID": "my-trace-123"})

        assert response.headers["X-Correlation-ID"] == "my-trace-123"

    def test_uses_request_id_header_as_fallback(self, client):
        """Should use X-Request-ID header if X-Correlation-ID not provided."""
        response = client.get("/health/live", headers={"X-Request-ID": "my-request-id-456"})

        assert response.headers["X-Correlation-ID"] == "my-request-id-456"

    def test_prefers_correlation_id_over_request_id(self, client):
        """Should prefer X-Correlation-ID over X-Request-ID."""
        response = client.get(
            "/health/live",
            headers={"X-Correlation-ID": "correlation-123", "X-Request-ID": "request-456"},
        )

        assert response.headers["X-Correlation-ID"] == "correlation-123"

    def test_present_on_error_responses(self, client):
        response = client.get("/trades/", headers={"X-Correlation-ID": "err-1"})

        assert response.status_code == 401
        assert response.headers["X-Correlation-ID"] == "err-1"

    def test_different_requests_get_different_ids(self, client):
        """Different requests should get different correlation IDs."""
        id1 = client.get("/health/live").headers["X-Correlation-ID"]
        id2 = client.get("/health/live").headers["X-Correlation-ID"]

        assert id1 != id2
