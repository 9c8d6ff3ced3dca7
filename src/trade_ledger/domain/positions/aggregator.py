"""Position aggregation.

Derives every statistic of a position from its raw trade list: direction,
exposure, average entry, realized PnL, the margin borrowing ledger, an
estimated liquidation price and ROI.

Nothing here is cached. The borrowing replay is order dependent, so the
whole result is recomputed from the current trades on every read.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .models import FLAT_EPSILON, Direction, Trade, TradeAction, split_pair


@dataclass(frozen=True)
class TradeBreakdown:
    """Per-trade values derived from the replay.

    Attributes
    ----------
    trade_id : str
        Trade the values belong to
    is_opening : bool
        Whether the trade matches the position's original direction
    margin : Optional[float]
        Principal committed by an opening trade (total / leverage);
        None for reducing trades
    borrowing_delta : Optional[float]
        Loan drawn (positive) or repaid (negative) by this trade; None
        when the trade did not touch the loan
    borrowing_currency : Optional[str]
        Currency of ``borrowing_delta``
    """

    trade_id: str
    is_opening: bool
    margin: Optional[float]
    borrowing_delta: Optional[float] = None
    borrowing_currency: Optional[str] = None


@dataclass
class PositionStats:
    """Derived statistics of one position.

    Liquidation price is an estimate that ignores maintenance margin
    and funding. ``None`` means not applicable.
    """

    original_direction: Direction = Direction.FLAT
    base_currency: str = ""
    quote_currency: str = "USD"
    total_buy_amount: float = 0.0
    total_buy_cost: float = 0.0
    total_sell_amount: float = 0.0
    total_sell_value: float = 0.0
    total_fees: float = 0.0
    remaining_amount: float = 0.0
    is_closed: bool = False
    avg_open_price: float = 0.0
    effective_leverage: float = 1.0
    leverage_applicable: bool = True
    realized_pnl: float = 0.0
    net_pnl: float = 0.0
    total_investment: float = 0.0
    net_roi: float = 0.0
    total_borrowed: float = 0.0
    remaining_borrowed: float = 0.0
    borrowed_currency: str = "USD"
    liquidation_price: Optional[float] = None
    position_size: float = 0.0
    final_position_value: float = 0.0
    trade_breakdown: Dict[str, TradeBreakdown] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return not self.is_closed


def is_opening_trade(direction: Direction, action: TradeAction) -> bool:
    """Whether a trade adds to exposure in the given direction."""
    return (direction == Direction.LONG and action == TradeAction.BUY) or (
        direction == Direction.SHORT and action == TradeAction.SELL
    )


def direction_of(trades: Sequence[Trade]) -> Direction:
    """Original direction of a chronologically sorted trade list."""
    if not trades:
        return Direction.FLAT
    return Direction.LONG if trades[0].is_buy else Direction.SHORT


class BorrowingLedger:
    """Chronological replay of the simulated margin loan.

    Longs borrow quote currency on buys and repay it from sell proceeds.
    Shorts borrow base units on sells and repay them with buys. Only
    trades with leverage above 1 take part.

    Invariants
    ----------
    - ``remaining`` never drops below zero; repayments are capped by
      what is outstanding
    - ``total`` never decreases
    """

    def __init__(self, direction: Direction):
        self.direction = direction
        self.total = 0.0
        self.remaining = 0.0

    def apply(self, trade: Trade, leverage: float) -> Optional[float]:
        """Replay one trade; return its signed loan delta, if any."""
        if leverage <= 1 or self.direction == Direction.FLAT:
            return None

        if is_opening_trade(self.direction, trade.action):
            # Long borrows in quote, short borrows in base
            size = trade.total if self.direction == Direction.LONG else trade.amount
            borrowed = size * (1 - 1 / leverage)
            self.remaining += borrowed
            self.total += borrowed
            return borrowed

        size = trade.total if self.direction == Direction.LONG else trade.amount
        repayment = min(size, self.remaining)
        if repayment <= 0:
            return None
        self.remaining -= repayment
        return -repayment


def aggregate(
    trades: Sequence[Trade],
    pair: str = "",
    leveraged: bool = True,
    simulate_borrowing: bool = True,
) -> PositionStats:
    """Compute all derived statistics of a position.

    Parameters
    ----------
    trades : Sequence[Trade]
        The position's trades; sorted here by timestamp (stable, so ties
        keep their order)
    pair : str
        "BASE/QUOTE" pair used to label currencies
    leveraged : bool
        False for markets without margin. Trade leverage is then ignored,
        no loan is simulated and ``leverage_applicable`` is False.
    simulate_borrowing : bool
        Run the borrowing ledger replay

    Returns
    -------
    PositionStats
        Neutral stats with direction 'flat' for an empty trade list

    Notes
    -----
    With $A$ the average opening price:

    - long: $PnL = \\sum sell\\ value - A \\times sold$
    - short: $PnL = A \\times bought - \\sum buy\\ cost$
    - $net\\ PnL = PnL - fees$, $ROI = net\\ PnL / investment \\times 100$

    where investment sums ``total / leverage`` over opening trades.

    Examples
    --------
    >>> stats = aggregate([buy_1_at_100_2x, sell_1_at_120])
    >>> stats.net_pnl, stats.total_investment, stats.net_roi
    (20.0, 50.0, 40.0)
    """
    base_currency, quote_currency = split_pair(pair)
    stats = PositionStats(
        base_currency=base_currency,
        quote_currency=quote_currency,
        borrowed_currency=quote_currency,
        leverage_applicable=leveraged,
    )
    if not trades:
        return stats

    ordered = sorted(trades, key=lambda t: t.timestamp)
    direction = direction_of(ordered)
    stats.original_direction = direction
    stats.borrowed_currency = (
        quote_currency if direction == Direction.LONG else base_currency
    )

    ledger = BorrowingLedger(direction)
    opening_amount = 0.0
    opening_cost = 0.0
    weighted_leverage = 0.0
    leverage_weight = 0.0
    breakdown: Dict[str, TradeBreakdown] = {}

    for trade in ordered:
        leverage = trade.effective_leverage if leveraged else 1.0
        opening = is_opening_trade(direction, trade.action)
        value = trade.price * trade.amount

        stats.total_fees += trade.fee
        if trade.is_buy:
            stats.total_buy_amount += trade.amount
            stats.total_buy_cost += value
        else:
            stats.total_sell_amount += trade.amount
            stats.total_sell_value += value

        if opening:
            opening_amount += trade.amount
            opening_cost += value
            weighted_leverage += trade.total * leverage
            leverage_weight += trade.total
            stats.total_investment += trade.total / leverage

        delta = ledger.apply(trade, leverage) if simulate_borrowing else None
        breakdown[trade.trade_id] = TradeBreakdown(
            trade_id=trade.trade_id,
            is_opening=opening,
            margin=trade.total / leverage if opening else None,
            borrowing_delta=delta,
            borrowing_currency=stats.borrowed_currency if delta is not None else None,
        )

    stats.trade_breakdown = breakdown
    stats.total_borrowed = ledger.total
    stats.remaining_borrowed = ledger.remaining

    stats.remaining_amount = stats.total_buy_amount - stats.total_sell_amount
    stats.is_closed = (
        abs(stats.remaining_amount) <= FLAT_EPSILON
        and stats.total_buy_amount > 0
        and stats.total_sell_amount > 0
    )

    stats.avg_open_price = opening_cost / opening_amount if opening_amount > 0 else 0.0
    stats.effective_leverage = (
        weighted_leverage / leverage_weight if leverage_weight > 0 else 1.0
    )

    if direction == Direction.LONG:
        stats.realized_pnl = (
            stats.total_sell_value - stats.avg_open_price * stats.total_sell_amount
        )
        stats.position_size = stats.total_buy_amount
        stats.final_position_value = stats.total_sell_value
    else:
        stats.realized_pnl = (
            stats.avg_open_price * stats.total_buy_amount - stats.total_buy_cost
        )
        stats.position_size = stats.total_sell_amount
        stats.final_position_value = stats.total_buy_cost

    stats.net_pnl = stats.realized_pnl - stats.total_fees
    stats.net_roi = (
        stats.net_pnl / stats.total_investment * 100
        if stats.total_investment > 0
        else 0.0
    )
    stats.liquidation_price = estimate_liquidation_price(stats)

    return stats


def estimate_liquidation_price(stats: PositionStats) -> Optional[float]:
    """Price at which margin losses would consume the committed principal.

    Only defined for open positions with effective leverage above 1.
    Maintenance margin and funding are not modelled.
    """
    if stats.is_closed or stats.effective_leverage <= 1:
        return None

    inverse = 1 / stats.effective_leverage
    if stats.original_direction == Direction.LONG:
        base = stats.avg_open_price * (1 - inverse)
    else:
        base = stats.avg_open_price * (1 + inverse)

    pnl_adjustment = (
        stats.realized_pnl / stats.remaining_amount
        if stats.remaining_amount != 0
        else 0.0
    )
    return base - pnl_adjustment


def borrowing_history(
    trades: Sequence[Trade], leveraged: bool = True
) -> List[Tuple[float, float]]:
    """(total borrowed, outstanding) after each trade, in chronological order."""
    ordered = sorted(trades, key=lambda t: t.timestamp)
    ledger = BorrowingLedger(direction_of(ordered))
    history = []
    for trade in ordered:
        ledger.apply(trade, trade.effective_leverage if leveraged else 1.0)
        history.append((ledger.total, ledger.remaining))
    return history
