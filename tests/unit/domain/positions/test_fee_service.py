"""Unit tests for TradingFeeService."""

import pytest

from trade_ledger.domain.positions import FeeSchedule, TradingFeeService
from trade_ledger.domain.positions.fee_config import get_default_fee_table
from trade_ledger.domain.positions.models import FeeType


class TestTradingFeeService:
    """Test suite for TradingFeeService."""

    @pytest.fixture
    def fee_service(self):
        """Create a TradingFeeService with the built-in fee table."""
        return TradingFeeService(get_default_fee_table())

    @pytest.mark.parametrize(
        "order_type,expected",
        [
            ("Limit", "maker"),
            ("Stop-Limit", "maker"),
            ("Market", "taker"),
            ("Stop Market", "taker"),
        ],
    )
    def test_determine_liquidity_type(self, fee_service, order_type, expected):
        """Test resting order types are maker and others taker."""
        assert fee_service.determine_liquidity_type(order_type) == expected

    @pytest.mark.parametrize(
        "exchange,market,order_type,expected_rate,expected_type",
        [
            ("Binance", "Spot", "Limit", 0.001, FeeType.MAKER),
            ("Binance", "Futures", "Limit", 0.0002, FeeType.MAKER),
            ("Binance", "Futures", "Market", 0.0005, FeeType.TAKER),
            ("Binance", "Options", "Stop Market", 0.0002, FeeType.TAKER),
            ("Bybit", "Futures", "Stop-Limit", 0.0001, FeeType.MAKER),
            ("Bybit", "Futures", "Market", 0.0006, FeeType.TAKER),
            ("Bybit", "Options", "Market", 0.0005, FeeType.TAKER),
        ],
    )
    def test_table_lookup(
        self, fee_service, exchange, market, order_type, expected_rate, expected_type
    ):
        """Test rates come from the exchange x market x liquidity table."""
        quote = fee_service.resolve_fee(exchange, market, order_type)

        assert quote.rate == pytest.approx(expected_rate)
        assert quote.fee_type == expected_type

    def test_manual_exchange_uses_percent_input(self, fee_service):
        """Test the manual exchange converts a percent rate to a fraction.

        Given - A trade on the "Other" exchange with a 0.075% manual rate
        When - The fee is resolved
        Then - The rate is 0.00075 and the type is Manual
        """
        quote = fee_service.resolve_fee(
            "Other", "Spot", "Limit", manual_rate_percent=0.075
        )

        assert quote.rate == pytest.approx(0.00075)
        assert quote.fee_type == FeeType.MANUAL

    def test_manual_exchange_without_rate_is_zero(self, fee_service):
        """Test a missing manual rate resolves to zero."""
        quote = fee_service.resolve_fee("Other", "Futures", "Market")

        assert quote.rate == 0.0
        assert quote.fee_type == FeeType.MANUAL

    def test_manual_rate_ignored_on_listed_exchange(self, fee_service):
        """Test manual rates only apply to the manual exchange."""
        quote = fee_service.resolve_fee(
            "Binance", "Spot", "Market", manual_rate_percent=5.0
        )
        assert quote.rate == pytest.approx(0.001)

    def test_missing_schedule_resolves_to_zero(self, fee_service):
        """Test a market without a schedule is free, not an error.

        Given - Bybit has no Cross Margin schedule
        When - A Cross Margin fee is resolved
        Then - The rate is zero and the liquidity type is still reported
        """
        quote = fee_service.resolve_fee("Bybit", "Cross Margin", "Market")

        assert quote.rate == 0.0
        assert quote.fee_type == FeeType.TAKER

    def test_futures_flag_redirects_margin_market(self, fee_service):
        """Test futures-flagged margin positions use the Futures schedule.

        Given - An Isolated Margin trade flagged as futures
        When - The fee is resolved with the redirect enabled
        Then - Binance Futures maker rate applies instead of margin rate
        """
        quote = fee_service.resolve_fee(
            "Binance", "Isolated Margin", "Limit", is_futures=True
        )

        assert quote.rate == pytest.approx(0.0002)
        assert fee_service.effective_market("Isolated Margin", True) == "Futures"

    def test_futures_flag_ignored_when_redirect_disabled(self):
        """Test the redirect flag turns the futures lookup off."""
        service = TradingFeeService(
            get_default_fee_table(), futures_fee_redirect=False
        )

        quote = service.resolve_fee(
            "Binance", "Isolated Margin", "Limit", is_futures=True
        )

        assert quote.rate == pytest.approx(0.001)
        assert service.effective_market("Isolated Margin", True) == "Isolated Margin"

    def test_futures_flag_ignored_on_spot(self, fee_service):
        """Test only leveraged markets are redirected."""
        assert fee_service.effective_market("Spot", True) == "Spot"

    def test_calculate_fee(self, fee_service):
        """Test fee equals total times rate."""
        quote = fee_service.resolve_fee("Binance", "Futures", "Market")
        assert fee_service.calculate_fee(2000.0, quote) == pytest.approx(1.0)

    def test_custom_table(self):
        """Test the service uses whatever table it is given."""
        service = TradingFeeService({"Binance": {"Spot": FeeSchedule(0.0, 0.002)}})

        assert service.resolve_fee("Binance", "Spot", "Market").rate == 0.002
        assert service.resolve_fee("Binance", "Futures", "Market").rate == 0.0
        assert service.get_fee_schedule("Bybit", "Spot") is None

    def test_invalid_liquidity_type_on_schedule(self):
        """Test FeeSchedule rejects unknown liquidity types."""
        with pytest.raises(ValueError, match="Invalid liquidity type"):
            FeeSchedule(0.001, 0.001).get_fee_for_liquidity_type("rebate")
