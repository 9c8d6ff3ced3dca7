"""Unit tests for portfolio analytics and export records."""

from datetime import datetime, timedelta

import pytest

from trade_ledger.domain.positions import Position, Trade, aggregate
from trade_ledger.domain.positions.analytics import (
    cumulative_pnl_series,
    export_rows,
    portfolio_overview,
)
from trade_ledger.domain.positions.models import (
    Exchange,
    FeeType,
    Market,
    OrderType,
    TradeAction,
)

T0 = datetime(2024, 6, 1)


def make_trade(action, amount, price, hours=0, fee=0.0, leverage=None):
    return Trade(
        action=TradeAction(action),
        price=price,
        amount=amount,
        total=price * amount,
        fee=fee,
        fee_rate=0.0,
        fee_type=FeeType.MAKER,
        timestamp=T0 + timedelta(hours=hours),
        order_type=OrderType.LIMIT,
        leverage=leverage,
    )


def make_position(*trades, pair="BTC/USDT", market=Market.SPOT):
    return Position(
        pair=pair, exchange=Exchange.BINANCE, market=market, trades=list(trades)
    )


class TestPortfolioOverview:
    """Test headline account statistics."""

    def test_overview(self):
        """Test realized PnL and win rate count closed positions only.

        Given - One winning and one losing closed position and one open
        When - The overview is computed
        Then - Win rate is 50% and the open position adds no PnL
        """
        winner = make_position(
            make_trade("Buy", 1, 100), make_trade("Sell", 1, 130, hours=1)
        )
        loser = make_position(
            make_trade("Sell", 1, 100), make_trade("Buy", 1, 110, hours=1)
        )
        still_open = make_position(make_trade("Buy", 2, 50))

        overview = portfolio_overview([winner, loser, still_open])

        assert overview.total_realized_pnl == pytest.approx(20)
        assert overview.win_rate == pytest.approx(50)
        assert overview.closed_positions == 2
        assert overview.open_positions == 1
        assert overview.total_trades == 5

    def test_empty_overview(self):
        """Test no positions gives zeros."""
        overview = portfolio_overview([])

        assert overview.win_rate == 0.0
        assert overview.total_realized_pnl == 0.0


class TestCumulativePnlSeries:
    """Test the cumulative PnL series."""

    def test_series_accumulates_in_time_order(self):
        """Test opening fees are losses and closes add realized PnL."""
        position = make_position(
            make_trade("Buy", 1, 100, fee=1.0),
            make_trade("Sell", 1, 120, hours=2, fee=1.2),
        )

        series = cumulative_pnl_series([position])

        assert [point.pnl for point in series] == pytest.approx([-1.0, 18.8])
        assert series[-1].cumulative_pnl == pytest.approx(17.8)
        assert series[0].timestamp < series[1].timestamp

    def test_one_sided_positions_skipped(self):
        """Test positions without both sides contribute nothing."""
        assert cumulative_pnl_series([make_position(make_trade("Buy", 1, 100))]) == []


class TestExportRows:
    """Test raw export records."""

    def test_export_summary_and_rows(self):
        """Test summary figures and per-trade rows of a leveraged long."""
        position = make_position(
            make_trade("Buy", 1, 100, leverage=2),
            make_trade("Sell", 1, 120, hours=1, leverage=2),
            market=Market.ISOLATED_MARGIN,
        )
        position.notes = "Followed plan"

        [summary] = export_rows([position])

        assert summary.direction == "long"
        assert summary.market == "Isolated Margin"
        assert summary.final_position_size == 1
        assert summary.final_position_value == pytest.approx(120)
        assert summary.total_borrowed == pytest.approx(50)
        assert summary.remaining_borrowed == pytest.approx(0)
        assert summary.net_pnl == pytest.approx(20)
        assert summary.net_roi == pytest.approx(40)
        assert summary.notes == "Followed plan"

        opening, closing = summary.trades
        assert opening.margin == pytest.approx(50)
        assert opening.borrowing_delta == pytest.approx(50)
        assert opening.leverage == 2
        assert closing.margin is None
        assert closing.borrowing_delta == pytest.approx(-50)
        assert closing.leverage is None

    def test_custom_stats_function(self):
        """Test callers can supply their own aggregation flags."""
        position = make_position(make_trade("Buy", 1, 100, leverage=2))
        calls = []

        def stats_fn(p):
            calls.append(p)
            return aggregate(p.trades, pair=p.pair, simulate_borrowing=False)

        [summary] = export_rows([position], stats_fn=stats_fn)

        assert calls == [position]
        assert summary.total_borrowed == 0
