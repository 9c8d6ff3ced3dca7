"""Tests for API response helpers."""

from datetime import datetime, timedelta, timezone

from trade_ledger.api.responses import (
    failure,
    normalize_timestamp,
    position_to_dict,
    success,
    to_plain,
)
from trade_ledger.domain.positions import Position, aggregate
from trade_ledger.domain.positions.models import Direction, Exchange, Market


class TestResponseHelpers:
    """Test envelope construction and serialization helpers."""

    def test_success_envelope(self):
        """Test a success envelope carries data and no error."""
        response = success("req_1", {"value": 1})

        assert response.success is True
        assert response.data == {"value": 1}
        assert response.error is None

    def test_failure_envelope(self):
        """Test a failure envelope carries the error code."""
        response = failure("req_1", "POSITION_NOT_FOUND", "Position not found")

        assert response.success is False
        assert response.data is None
        assert response.error.code == "POSITION_NOT_FOUND"

    def test_to_plain_converts_nested_enums(self):
        """Test enums inside dicts and lists become their values."""
        value = {"direction": Direction.LONG, "markets": [Market.SPOT]}

        assert to_plain(value) == {"direction": "long", "markets": ["Spot"]}

    def test_position_to_dict(self):
        """Test a position is serialized with its stats."""
        position = Position("BTC/USDT", Exchange.BINANCE, Market.SPOT)

        data = position_to_dict(position, aggregate([], pair=position.pair))

        assert data["exchange"] == "Binance"
        assert data["stats"]["original_direction"] == "flat"
        assert data["stats"]["is_open"] is True

    def test_normalize_aware_timestamp(self):
        """Test aware timestamps are converted to naive UTC."""
        aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

        assert normalize_timestamp(aware) == datetime(2024, 1, 1, 10, 0)

    def test_normalize_naive_timestamp_unchanged(self):
        """Test naive timestamps are kept as given."""
        naive = datetime(2024, 1, 1, 12, 0)

        assert normalize_timestamp(naive) is naive

    def test_normalize_missing_timestamp(self):
        """Test a missing timestamp becomes a naive current time."""
        assert normalize_timestamp(None).tzinfo is None
