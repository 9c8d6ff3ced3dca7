"""Integration tests for trade logging and position endpoints."""

import pytest


class TestHealth:
    """Test the health endpoint."""

    def test_root(self, client):
        """Test the service reports ok."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestLogTrade:
    """Test POST /trades."""

    def test_first_trade_opens_position(self, client, log_trade):
        """Test logging a buy creates a position with a resolved fee.

        Given - No positions
        When - A Binance spot market buy of 1 @ 100 is logged
        Then - A position exists and the taker fee of 0.1% was charged
        """
        body = log_trade(order_type="Market")

        assert body["success"] is True
        trade = body["data"]["trade"]
        assert trade["fee_type"] == "Taker"
        assert trade["fee_rate"] == pytest.approx(0.001)
        assert trade["fee"] == pytest.approx(0.1)
        assert trade["total"] == pytest.approx(100)

        listing = client.get("/positions").json()
        assert len(listing["data"]["positions"]) == 1

    def test_manual_exchange_fee(self, log_trade):
        """Test the Other exchange charges the manual percent rate."""
        body = log_trade(exchange="Other", manual_fee_rate_percent=0.2)

        trade = body["data"]["trade"]
        assert trade["fee_type"] == "Manual"
        assert trade["fee"] == pytest.approx(0.2)

    def test_leverage_rejected_on_spot(self, client, log_trade):
        """Test leverage on spot is rejected without creating a position."""
        body = log_trade(leverage=3.0)

        assert body["success"] is False
        assert body["error"]["code"] == "LEVERAGE_NOT_SUPPORTED"
        assert client.get("/positions").json()["data"]["positions"] == []

    @pytest.mark.parametrize(
        "fields,code",
        [
            ({"pair": "BTC"}, "INVALID_PAIR"),
            ({"price": 0.0}, "INVALID_PRICE"),
            ({"amount": -1.0}, "INVALID_AMOUNT"),
            ({"market": "Isolated Margin", "principal": 0.0}, "INVALID_PRINCIPAL"),
        ],
    )
    def test_validation_errors(self, log_trade, fields, code):
        """Test invalid submissions return their error code."""
        body = log_trade(**fields)

        assert body["success"] is False
        assert body["error"]["code"] == code

    def test_unknown_enum_is_request_error(self, client):
        """Test unknown enum values fail request validation."""
        response = client.post(
            "/trades",
            json={
                "pair": "BTC/USDT",
                "exchange": "Kraken",
                "market": "Spot",
                "action": "Buy",
                "price": 1.0,
                "amount": 1.0,
            },
        )

        assert response.status_code == 422

    def test_unknown_position_id(self, log_trade):
        """Test an unknown explicit position is reported."""
        body = log_trade(position_id="missing")

        assert body["error"]["code"] == "POSITION_NOT_FOUND"

    def test_trade_for_other_pair_cannot_target_position(self, client, log_trade):
        """Test an explicit position must share the trade's key.

        Given - A BTC/USDT isolated margin position on Binance
        When - An ETH/USDT Bybit spot buy is posted with that position id
        Then - POSITION_KEY_MISMATCH is returned and the position keeps one trade
        """
        opened = log_trade(market="Isolated Margin", principal=50.0, leverage=2.0)
        position_id = opened["data"]["position_id"]

        body = log_trade(
            pair="ETH/USDT",
            exchange="Bybit",
            price=2000.0,
            amount=5.0,
            position_id=position_id,
        )

        assert body["success"] is False
        assert body["error"]["code"] == "POSITION_KEY_MISMATCH"
        assert body["error"]["details"]["position_pair"] == "BTC/USDT"
        position = client.get(f"/positions/{position_id}").json()["data"]["position"]
        assert len(position["trades"]) == 1
        assert len(client.get("/positions").json()["data"]["positions"]) == 1

    def test_leveraged_round_trip(self, client, log_trade):
        """Test a 2x margin long closed at a profit.

        Given - Buy 1 @ 100 with 50 principal at 2x on Isolated Margin
        When - Sell 1 @ 120 is logged
        Then - The position is closed with 50 borrowed and repaid
        """
        opened = log_trade(
            market="Isolated Margin", leverage=2.0, principal=50.0, pair="BTC/USDT"
        )
        position_id = opened["data"]["position_id"]

        closed = log_trade(
            market="Isolated Margin", action="Sell", price=120.0, leverage=2.0
        )

        assert closed["data"]["position_id"] == position_id
        stats = closed["data"]["position"]["stats"]
        assert stats["is_closed"] is True
        assert stats["total_borrowed"] == pytest.approx(50)
        assert stats["remaining_borrowed"] == pytest.approx(0)
        assert stats["realized_pnl"] == pytest.approx(20)
        assert stats["total_investment"] == pytest.approx(50)

    def test_force_close(self, client, log_trade):
        """Test force-close leaves an exact zero remainder."""
        opened = log_trade(amount=1.0)
        position_id = opened["data"]["position_id"]
        log_trade(action="Sell", amount=0.99999999)

        body = log_trade(action="Sell", amount=1.01e-8, force_close=True)

        assert body["data"]["position"]["stats"]["remaining_amount"] == 0.0
        stats = client.get(f"/positions/{position_id}").json()["data"]["position"]
        assert stats["stats"]["is_closed"] is True

    def test_timezone_aware_timestamps_sorted(self, client, log_trade):
        """Test aware and naive timestamps are ordered together."""
        log_trade(timestamp="2024-01-01T12:00:00")
        body = log_trade(timestamp="2024-01-01T12:00:00+02:00", price=90.0)

        trades = body["data"]["position"]["trades"]
        assert [t["price"] for t in trades] == [90.0, 100.0]


class TestPositionMutations:
    """Test editing and deleting trades and positions."""

    def test_edit_trade(self, client, log_trade):
        """Test editing a trade recomputes stats under the same id."""
        opened = log_trade()
        position_id = opened["data"]["position_id"]
        trade_id = opened["data"]["trade_id"]

        response = client.put(
            f"/positions/{position_id}/trades/{trade_id}",
            json={"action": "Buy", "price": 100.0, "amount": 3.0},
        )

        body = response.json()
        assert body["success"] is True
        assert body["data"]["trade"]["trade_id"] == trade_id
        assert body["data"]["position"]["stats"]["remaining_amount"] == 3.0

    def test_edit_unknown_trade(self, client, log_trade):
        """Test editing a missing trade returns TRADE_NOT_FOUND."""
        position_id = log_trade()["data"]["position_id"]

        body = client.put(
            f"/positions/{position_id}/trades/missing",
            json={"action": "Buy", "price": 1.0, "amount": 1.0},
        ).json()

        assert body["error"]["code"] == "TRADE_NOT_FOUND"

    def test_delete_last_trade_removes_position(self, client, log_trade):
        """Test deleting the only trade deletes the position."""
        opened = log_trade()
        position_id = opened["data"]["position_id"]
        trade_id = opened["data"]["trade_id"]

        body = client.delete(f"/positions/{position_id}/trades/{trade_id}").json()

        assert body["data"]["position_removed"] is True
        missing = client.get(f"/positions/{position_id}").json()
        assert missing["error"]["code"] == "POSITION_NOT_FOUND"

    def test_delete_position(self, client, log_trade):
        """Test deleting a position removes it."""
        position_id = log_trade()["data"]["position_id"]

        assert client.delete(f"/positions/{position_id}").json()["success"] is True
        assert client.get("/positions").json()["data"]["positions"] == []
        repeat = client.delete(f"/positions/{position_id}").json()
        assert repeat["error"]["code"] == "POSITION_NOT_FOUND"
