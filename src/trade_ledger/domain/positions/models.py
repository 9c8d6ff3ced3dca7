"""Domain models for position tracking and fee calculation.

This module contains the data models used within the positions domain:
trades, positions, the draft a caller submits before a trade exists,
and the fee schedule types consumed by the fee service.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


# Amount below which a position is considered flat
FLAT_EPSILON = 1e-9

# Residual below which a closing amount may be snapped to the remainder
FORCE_CLOSE_EPSILON = 1e-6


class TradeAction(str, Enum):
    """Side of a trade execution."""

    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    """Order type used when the trade was placed."""

    LIMIT = "Limit"
    MARKET = "Market"
    STOP_LIMIT = "Stop-Limit"
    STOP_MARKET = "Stop Market"

    @property
    def is_maker(self) -> bool:
        """Whether the order type rests on the book (maker pricing)."""
        return self in (OrderType.LIMIT, OrderType.STOP_LIMIT)


class FeeType(str, Enum):
    """How the fee rate of a trade was determined."""

    MAKER = "Maker"
    TAKER = "Taker"
    MANUAL = "Manual"


class Exchange(str, Enum):
    """Supported exchanges. OTHER takes a manually entered fee rate."""

    BINANCE = "Binance"
    BYBIT = "Bybit"
    OTHER = "Other"


class Market(str, Enum):
    """Market segment a position trades in."""

    SPOT = "Spot"
    FUTURES = "Futures"
    CROSS_MARGIN = "Cross Margin"
    ISOLATED_MARGIN = "Isolated Margin"
    OPTIONS = "Options"


class Direction(str, Enum):
    """Direction of a position, fixed by its earliest trade."""

    LONG = "long"
    SHORT = "short"
    FLAT = "flat"


class EntryField(str, Enum):
    """The authoritative input of an opening trade entry."""

    PRINCIPAL = "principal"
    AMOUNT = "amount"
    TOTAL = "total"


def new_id() -> str:
    """Generate a fresh identifier for trades and positions."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Trade:
    """A single executed trade.

    Trades are immutable once created. Editing a trade means replacing
    it with a new instance carrying the same ``trade_id``.

    Parameters
    ----------
    action : TradeAction
        Buy or Sell
    price : float
        Execution price in quote currency, > 0
    amount : float
        Executed quantity in base currency, > 0
    total : float
        Quote-currency notional of the trade
    fee : float
        Fee paid in quote currency, >= 0
    fee_rate : float
        Rate the fee was computed with (fraction, not percent)
    fee_type : FeeType
        Maker, Taker or Manual
    timestamp : datetime
        Execution time, used for chronological replay
    order_type : OrderType
        Order type the trade was placed with
    leverage : Optional[float]
        Leverage multiplier, None for unleveraged trades
    trade_id : str
        Unique identifier, generated when omitted
    """

    action: TradeAction
    price: float
    amount: float
    total: float
    fee: float
    fee_rate: float
    fee_type: FeeType
    timestamp: datetime
    order_type: OrderType = OrderType.LIMIT
    leverage: Optional[float] = None
    trade_id: str = field(default_factory=new_id)

    @property
    def is_buy(self) -> bool:
        """Check if this is a buy trade."""
        return self.action == TradeAction.BUY

    @property
    def effective_leverage(self) -> float:
        """Leverage used for margin arithmetic; missing or <= 1 counts as 1x."""
        if self.leverage is not None and self.leverage > 1:
            return self.leverage
        return 1.0


@dataclass
class TradeDraft:
    """A trade as submitted by the entry form, before it is logged.

    Carries the calculator's ``principal`` so opening trades can be
    validated at the submission boundary. ``to_trade`` produces the
    immutable record the position stores.
    """

    action: TradeAction
    price: float
    amount: float
    total: float
    fee: float = 0.0
    fee_rate: float = 0.0
    fee_type: FeeType = FeeType.TAKER
    timestamp: datetime = field(default_factory=datetime.now)
    order_type: OrderType = OrderType.LIMIT
    leverage: Optional[float] = None
    principal: Optional[float] = None

    def to_trade(self, trade_id: Optional[str] = None) -> Trade:
        """Freeze the draft into a Trade, optionally reusing an id."""
        return Trade(
            action=self.action,
            price=self.price,
            amount=self.amount,
            total=self.total,
            fee=self.fee,
            fee_rate=self.fee_rate,
            fee_type=self.fee_type,
            timestamp=self.timestamp,
            order_type=self.order_type,
            leverage=self.leverage,
            trade_id=trade_id or new_id(),
        )


@dataclass(frozen=True)
class PositionKey:
    """Combination of attributes shared by every trade in a position."""

    pair: str
    exchange: Exchange
    market: Market
    is_futures: Optional[bool] = None


@dataclass
class Position:
    """An accumulating exposure in one pair/exchange/market combination.

    Only raw trades are stored. All derived statistics come from the
    aggregator and are recomputed on every read.

    Parameters
    ----------
    pair : str
        Trading pair in "BASE/QUOTE" form
    exchange : Exchange
        Exchange the trades were executed on
    market : Market
        Market segment
    trades : List[Trade]
        Trades ordered ascending by timestamp
    is_futures : Optional[bool]
        Futures flag for leveraged markets
    notes : Optional[str]
        Free-text review attached when saved to the ledger
    saved_to_ledger : bool
        Whether a copy of this position exists in the ledger
    account_balance : Optional[float]
        Balance recorded for cross margin positions
    position_id : str
        Unique identifier, generated when omitted
    """

    pair: str
    exchange: Exchange
    market: Market
    trades: List[Trade] = field(default_factory=list)
    is_futures: Optional[bool] = None
    notes: Optional[str] = None
    saved_to_ledger: bool = False
    account_balance: Optional[float] = None
    position_id: str = field(default_factory=new_id)

    @property
    def key(self) -> PositionKey:
        """Matching key for this position."""
        return PositionKey(
            pair=self.pair,
            exchange=self.exchange,
            market=self.market,
            is_futures=self.is_futures,
        )

    @property
    def base_currency(self) -> str:
        """Base asset of the pair, empty when the pair is malformed."""
        return split_pair(self.pair)[0]

    @property
    def quote_currency(self) -> str:
        """Quote asset of the pair, USD when the pair has no quote."""
        return split_pair(self.pair)[1]

    @property
    def first_trade_time(self) -> Optional[datetime]:
        """Timestamp of the earliest trade."""
        if not self.trades:
            return None
        return self.trades[0].timestamp

    def find_trade(self, trade_id: str) -> Optional[Trade]:
        """Return the trade with the given id, if present."""
        for trade in self.trades:
            if trade.trade_id == trade_id:
                return trade
        return None

    def sort_trades(self) -> None:
        """Order trades by timestamp; ties keep insertion order."""
        self.trades.sort(key=lambda t: t.timestamp)


def split_pair(pair: str) -> Tuple[str, str]:
    """Split "BASE/QUOTE" into its currencies.

    Returns ``("", "USD")`` style defaults for the missing side.
    """
    parts = pair.split("/")
    base = parts[0] if parts and parts[0] else ""
    quote = parts[1] if len(parts) > 1 and parts[1] else "USD"
    return base, quote


@dataclass
class FeeSchedule:
    """Maker and taker rates for one exchange/market cell.

    Rates are fractions of notional (0.001 = 0.1%).

    Examples
    --------
    >>> schedule = FeeSchedule(maker=0.0002, taker=0.0005)
    >>> schedule.get_fee_for_liquidity_type("taker")
    0.0005
    """

    maker: float
    taker: float

    def get_fee_for_liquidity_type(self, liquidity_type: str) -> float:
        """Get the rate for a specific liquidity type.

        Parameters
        ----------
        liquidity_type : str
            Either "maker" or "taker"

        Returns
        -------
        float
            Fee rate as a fraction of notional

        Raises
        ------
        ValueError
            If liquidity_type is not "maker" or "taker"
        """
        if liquidity_type == "maker":
            return self.maker
        elif liquidity_type == "taker":
            return self.taker
        else:
            raise ValueError(
                f"Invalid liquidity type: {liquidity_type}. "
                "Must be 'maker' or 'taker'"
            )


@dataclass(frozen=True)
class FeeQuote:
    """Resolved fee rate and how it was determined."""

    rate: float
    fee_type: FeeType
