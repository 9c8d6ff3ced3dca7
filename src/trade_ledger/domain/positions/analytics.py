"""Portfolio analytics and export records.

Summaries built on top of the aggregator for account overviews, the
cumulative PnL series and ledger exports. Every value is a raw number;
currency symbols, rounding and file layout belong to the consumer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .aggregator import PositionStats, aggregate, is_opening_trade
from .models import Direction, Position


StatsFn = Callable[[Position], PositionStats]


def _default_stats(position: Position) -> PositionStats:
    return aggregate(position.trades, pair=position.pair)


@dataclass(frozen=True)
class PortfolioOverview:
    """Headline account statistics."""

    total_realized_pnl: float
    win_rate: float
    closed_positions: int
    open_positions: int
    total_trades: int


@dataclass(frozen=True)
class PnlPoint:
    """Cumulative net PnL after one trade event."""

    timestamp: datetime
    pnl: float
    cumulative_pnl: float


@dataclass(frozen=True)
class ExportTradeRow:
    """One trade of an exported position."""

    position_id: str
    timestamp: datetime
    pair: str
    action: str
    order_type: str
    price: float
    margin: Optional[float]
    borrowing_delta: Optional[float]
    borrowing_currency: Optional[str]
    leverage: Optional[float]
    amount: float
    total: float
    fee: float


@dataclass(frozen=True)
class ExportSummary:
    """Position-level figures an exporter needs, as raw numbers."""

    position_id: str
    pair: str
    market: str
    is_futures: bool
    direction: str
    final_position_size: float
    final_position_value: float
    total_borrowed: float
    remaining_borrowed: float
    borrowed_currency: str
    net_pnl: float
    avg_open_price: float
    net_roi: float
    notes: Optional[str]
    trades: List[ExportTradeRow] = field(default_factory=list)


def portfolio_overview(
    positions: Sequence[Position], stats_fn: StatsFn = _default_stats
) -> PortfolioOverview:
    """Summarize realized results across positions.

    Only closed positions contribute to realized PnL and win rate. A
    position wins when its net PnL (after fees) is positive.
    """
    total_pnl = 0.0
    closed = 0
    winners = 0
    total_trades = 0

    for position in positions:
        total_trades += len(position.trades)
        stats = stats_fn(position)
        if not stats.is_closed:
            continue
        closed += 1
        total_pnl += stats.net_pnl
        if stats.net_pnl > 0:
            winners += 1

    return PortfolioOverview(
        total_realized_pnl=total_pnl,
        win_rate=winners / closed * 100 if closed > 0 else 0.0,
        closed_positions=closed,
        open_positions=len(positions) - closed,
        total_trades=total_trades,
    )


def cumulative_pnl_series(
    positions: Sequence[Position], stats_fn: StatsFn = _default_stats
) -> List[PnlPoint]:
    """Chronological cumulative net PnL across positions.

    Only positions with trades on both sides contribute. Each reducing
    trade adds the PnL it realized against the average opening price,
    less its fee; each opening trade adds its fee as a loss.
    """
    events = []
    for position in positions:
        stats = stats_fn(position)
        if stats.total_buy_amount <= 0 or stats.total_sell_amount <= 0:
            continue
        direction = stats.original_direction
        avg = stats.avg_open_price
        for trade in position.trades:
            if is_opening_trade(direction, trade.action):
                events.append((trade.timestamp, -trade.fee))
                continue
            value = trade.price * trade.amount
            if direction == Direction.LONG:
                pnl = value - avg * trade.amount
            else:
                pnl = avg * trade.amount - value
            events.append((trade.timestamp, pnl - trade.fee))

    events.sort(key=lambda event: event[0])

    series = []
    running = 0.0
    for timestamp, pnl in events:
        running += pnl
        series.append(PnlPoint(timestamp=timestamp, pnl=pnl, cumulative_pnl=running))
    return series


def export_rows(
    positions: Sequence[Position], stats_fn: StatsFn = _default_stats
) -> List[ExportSummary]:
    """Raw export records for a set of positions, trades in time order."""
    summaries = []
    for position in positions:
        if not position.trades:
            continue
        stats = stats_fn(position)
        rows = []
        for trade in sorted(position.trades, key=lambda t: t.timestamp):
            info = stats.trade_breakdown.get(trade.trade_id)
            opening = info.is_opening if info else True
            rows.append(
                ExportTradeRow(
                    position_id=position.position_id,
                    timestamp=trade.timestamp,
                    pair=position.pair,
                    action=trade.action.value,
                    order_type=trade.order_type.value,
                    price=trade.price,
                    margin=info.margin if info else None,
                    borrowing_delta=info.borrowing_delta if info else None,
                    borrowing_currency=info.borrowing_currency if info else None,
                    leverage=(trade.leverage or 1.0) if opening else None,
                    amount=trade.amount,
                    total=trade.total,
                    fee=trade.fee,
                )
            )

        summaries.append(
            ExportSummary(
                position_id=position.position_id,
                pair=position.pair,
                market=position.market.value,
                is_futures=bool(position.is_futures),
                direction=stats.original_direction.value,
                final_position_size=stats.position_size,
                final_position_value=stats.final_position_value,
                total_borrowed=stats.total_borrowed,
                remaining_borrowed=stats.remaining_borrowed,
                borrowed_currency=stats.borrowed_currency,
                net_pnl=stats.net_pnl,
                avg_open_price=stats.avg_open_price,
                net_roi=stats.net_roi,
                notes=position.notes,
                trades=rows,
            )
        )
    return summaries
