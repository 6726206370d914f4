# backend/tests/routers/test_trades_api.py
"""
Integration tests for the /trades endpoints.
"""

from decimal import Decimal

from sqlalchemy import func, select

from app.models import ProfitLoss
from tests.conftest import auth_headers_for, create_trade, create_user, utc


def _payload(**overrides) -> dict:
    payload = {
        "stock_symbol": "AAPL",
        "transaction_type": "Buy",
        "quantity": "10",
        "price": "100",
        "trade_date": "2024-01-15T10:00:00Z",
    }
    payload.update(overrides)
    return payload


# =============================================================================
# CREATE
# =============================================================================

class TestCreateTrade:

    def test_create_buy(self, client, auth_headers, sample_user):
        response = client.post("/trades/", json=_payload(), headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["user_id"] == sample_user.id
        assert data["stock_symbol"] == "AAPL"
        assert data["transaction_type"] == "Buy"
        assert data["status"] == "Open"
        assert Decimal(data["quantity"]) == Decimal("10")

    def test_create_sell_records_profit_loss(self, client, auth_headers, db):
        client.post("/trades/", json=_payload(), headers=auth_headers)
        client.post("/trades/", json=_payload(price="150"), headers=auth_headers)

        response = client.post(
            "/trades/",
            json=_payload(transaction_type="Sell", quantity="20", price="150"),
            headers=auth_headers,
        )

        assert response.status_code == 201
        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == response.json()["id"]))
        assert record.profit_or_loss == Decimal("500.00")

    def test_oversell_is_400(self, client, auth_headers, db):
        client.post("/trades/", json=_payload(quantity="5"), headers=auth_headers)

        response = client.post(
            "/trades/",
            json=_payload(transaction_type="Sell", quantity="6"),
            headers=auth_headers,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InsufficientHoldingsError"
        assert data["details"]["stock_symbol"] == "AAPL"
        assert Decimal(data["details"]["available"]) == Decimal("5")
        assert db.scalar(select(func.count()).select_from(ProfitLoss)) == 0

    def test_symbol_trimmed_case_kept(self, client, auth_headers):
        response = client.post("/trades/", json=_payload(stock_symbol="  sap.de "), headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["stock_symbol"] == "sap.de"

    def test_naive_trade_date_accepted(self, client, auth_headers):
        response = client.post(
            "/trades/", json=_payload(trade_date="2024-01-15T10:00:00"), headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()["trade_date"].startswith("2024-01-15T10:00:00")

    def test_invalid_bodies_are_422(self, client, auth_headers):
        bad = [
            _payload(quantity="0"),
            _payload(price="-1"),
            _payload(stock_symbol="   "),
            _payload(stock_symbol="BRK B"),
            _payload(transaction_type="Short"),
            _payload(trade_date="yesterday"),
        ]
        for body in bad:
            response = client.post("/trades/", json=body, headers=auth_headers)
            assert response.status_code == 422, body

    def test_requires_authentication(self, client):
        response = client.post("/trades/", json=_payload())

        assert response.status_code == 401


# =============================================================================
# READ
# =============================================================================

class TestListTrades:

    def test_list_newest_first_with_pagination(self, client, auth_headers, db, sample_user):
        for day in (1, 2, 3):
            create_trade(db, sample_user, trade_date=utc(2024, 1, day))

        response = client.get("/trades/?limit=2", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [t["trade_date"][:10] for t in data["items"]] == ["2024-01-03", "2024-01-02"]
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["has_next"] is True

    def test_filters(self, client, auth_headers, db, sample_user):
        create_trade(db, sample_user, stock_symbol="AAPL")
        create_trade(db, sample_user, stock_symbol="MSFT")

        response = client.get("/trades/?stock_symbol=MSFT&transaction_type=Buy", headers=auth_headers)

        items = response.json()["items"]
        assert [t["stock_symbol"] for t in items] == ["MSFT"]

    def test_start_after_end_is_400(self, client, auth_headers):
        response = client.get(
            "/trades/?start_date=2024-02-01&end_date=2024-01-01", headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "start_date"}

    def test_only_own_trades(self, client, auth_headers, db):
        other = create_user(db, email="other@example.com")
        create_trade(db, other)

        response = client.get("/trades/", headers=auth_headers)

        assert response.json()["items"] == []

    def test_get_other_users_trade_is_404(self, client, auth_headers, db):
        other = create_user(db, email="other@example.com")
        trade = create_trade(db, other)

        response = client.get(f"/trades/{trade.id}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["details"] == {"resource_type": "Trade", "resource_id": trade.id}


# =============================================================================
# UPDATE / DELETE
# =============================================================================

class TestUpdateTrade:

    def test_patch_sell_rederives(self, client, auth_headers, db, sample_user):
        create_trade(db, sample_user, quantity="10", price="100")
        sell = client.post(
            "/trades/",
            json=_payload(transaction_type="Sell", quantity="5", price="120"),
            headers=auth_headers,
        ).json()

        response = client.patch(f"/trades/{sell['id']}", json={"price": "140"}, headers=auth_headers)

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("140")
        record = db.scalar(select(ProfitLoss).where(ProfitLoss.sell_trade_id == sell["id"]))
        db.refresh(record)
        assert record.profit_or_loss == Decimal("200.00")

    def test_symbol_cannot_change(self, client, auth_headers, db, sample_user):
        trade = create_trade(db, sample_user)

        response = client.patch(
            f"/trades/{trade.id}", json={"stock_symbol": "MSFT"}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_patch_oversell_is_400(self, client, auth_headers, db, sample_user):
        create_trade(db, sample_user, quantity="10")
        sell = client.post(
            "/trades/", json=_payload(transaction_type="Sell", quantity="5"), headers=auth_headers
        ).json()

        response = client.patch(f"/trades/{sell['id']}", json={"quantity": "12"}, headers=auth_headers)

        assert response.status_code == 400


class TestDeleteTrade:

    def test_delete_sell_removes_record(self, client, auth_headers, db, sample_user):
        create_trade(db, sample_user, quantity="10")
        sell = client.post(
            "/trades/", json=_payload(transaction_type="Sell", quantity="5"), headers=auth_headers
        ).json()

        response = client.delete(f"/trades/{sell['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert client.get(f"/trades/{sell['id']}", headers=auth_headers).status_code == 404
        assert db.scalar(select(func.count()).select_from(ProfitLoss)) == 0

    def test_delete_unknown_is_404(self, client, auth_headers):
        assert client.delete("/trades/999", headers=auth_headers).status_code == 404

    def test_other_user_cannot_delete(self, client, db, sample_user):
        trade = create_trade(db, sample_user)
        other = create_user(db, email="other@example.com")

        response = client.delete(f"/trades/{trade.id}", headers=auth_headers_for(other))

        assert response.status_code == 404
