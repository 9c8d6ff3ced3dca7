"""Trading fee resolution service.

This module resolves the fee rate and fee type of a trade from the
exchange, market and order type, with a manual override for exchanges
that have no published schedule.
"""

import logging
from typing import Iterable, Optional, Union

from .fee_config import FeeTable
from .models import Exchange, FeeQuote, FeeSchedule, FeeType, Market, OrderType

logger = logging.getLogger(__name__)

DEFAULT_LEVERAGED_MARKETS = (Market.CROSS_MARGIN.value, Market.ISOLATED_MARGIN.value)


def _name(value: Union[str, Exchange, Market, OrderType]) -> str:
    return value.value if hasattr(value, "value") else str(value)


class TradingFeeService:
    """Service for resolving trading fees by exchange, market and order type.

    The service looks rates up in a static table keyed by exchange and
    market, split into maker and taker rates. It is stateless; every
    method is a pure function of its arguments and the table given at
    construction.

    Parameters
    ----------
    fee_table : FeeTable
        Mapping exchange -> market -> FeeSchedule
    futures_fee_redirect : bool
        When True, trades on a leveraged market flagged as futures are
        priced with the exchange's "Futures" schedule
    manual_exchange : str
        Exchange whose fee rate is always entered by hand
    leveraged_markets : Iterable[str]
        Markets on which the futures flag is meaningful

    Attributes
    ----------
    fee_table : FeeTable
        The fee schedules used for lookups

    Notes
    -----
    Order types are classified as:

    1. Limit and Stop-Limit orders rest on the book and pay maker rates
    2. Market and Stop Market orders cross the spread and pay taker rates

    Lookups never fail. A missing exchange or market cell resolves to a
    zero rate, which matches how an unlisted venue would be logged.

    TradingContext
    --------------
    Crypto venues publish base-tier maker/taker schedules per market
    segment. Margin accounts that actually route to perpetual futures
    are charged futures rates, which is what the redirect flag models.

    Examples
    --------
    >>> service = TradingFeeService(get_default_fee_table())
    >>> quote = service.resolve_fee("Binance", "Futures", "Market")
    >>> quote.rate, quote.fee_type
    (0.0005, <FeeType.TAKER: 'Taker'>)
    >>> service.resolve_fee("Other", "Spot", "Limit", manual_rate_percent=0.1)
    FeeQuote(rate=0.001, fee_type=<FeeType.MANUAL: 'Manual'>)
    """

    def __init__(
        self,
        fee_table: FeeTable,
        futures_fee_redirect: bool = True,
        manual_exchange: str = Exchange.OTHER.value,
        leveraged_markets: Iterable[str] = DEFAULT_LEVERAGED_MARKETS,
    ):
        """Initialize the fee service with a fee table and engine flags."""
        self.fee_table = fee_table
        self.futures_fee_redirect = futures_fee_redirect
        self.manual_exchange = manual_exchange
        self.leveraged_markets = frozenset(leveraged_markets)

    def determine_liquidity_type(
        self, order_type: Union[str, OrderType]
    ) -> str:
        """Classify an order type as "maker" or "taker".

        Parameters
        ----------
        order_type : Union[str, OrderType]
            Limit, Market, Stop-Limit or Stop Market

        Returns
        -------
        str
            "maker" for resting order types, "taker" otherwise
        """
        if _name(order_type) in (
            OrderType.LIMIT.value,
            OrderType.STOP_LIMIT.value,
        ):
            return "maker"
        return "taker"

    def effective_market(
        self, market: Union[str, Market], is_futures: Optional[bool] = None
    ) -> str:
        """Market whose schedule applies to a trade.

        Parameters
        ----------
        market : Union[str, Market]
            The market the position trades in
        is_futures : Optional[bool]
            Futures flag of the position

        Returns
        -------
        str
            "Futures" for flagged leveraged markets when the redirect is
            enabled, otherwise the market itself
        """
        market_name = _name(market)
        if (
            self.futures_fee_redirect
            and is_futures
            and market_name in self.leveraged_markets
        ):
            return Market.FUTURES.value
        return market_name

    def resolve_fee(
        self,
        exchange: Union[str, Exchange],
        market: Union[str, Market],
        order_type: Union[str, OrderType],
        is_futures: Optional[bool] = None,
        manual_rate_percent: Optional[float] = None,
    ) -> FeeQuote:
        """Resolve the fee rate and type for a trade.

        Parameters
        ----------
        exchange : Union[str, Exchange]
            Exchange the trade executes on
        market : Union[str, Market]
            Market segment
        order_type : Union[str, OrderType]
            Order type of the trade
        is_futures : Optional[bool]
            Futures flag of the position
        manual_rate_percent : Optional[float]
            Fee rate in percent, used only for the manual exchange

        Returns
        -------
        FeeQuote
            Rate as a fraction of notional and the fee type label

        Examples
        --------
        >>> service.resolve_fee("Binance", "Isolated Margin", "Limit",
        ...                     is_futures=True).rate
        0.0002
        """
        exchange_name = _name(exchange)
        liquidity_type = self.determine_liquidity_type(order_type)

        if exchange_name == self.manual_exchange:
            rate = (manual_rate_percent or 0.0) / 100
            return FeeQuote(rate=rate, fee_type=FeeType.MANUAL)

        fee_type = FeeType.MAKER if liquidity_type == "maker" else FeeType.TAKER
        schedule = self.get_fee_schedule(
            exchange_name, self.effective_market(market, is_futures)
        )
        if schedule is None:
            logger.debug(
                f"No fee schedule for {exchange_name} / {_name(market)}; "
                "using zero rate"
            )
            return FeeQuote(rate=0.0, fee_type=fee_type)

        return FeeQuote(
            rate=schedule.get_fee_for_liquidity_type(liquidity_type),
            fee_type=fee_type,
        )

    def calculate_fee(self, total: float, quote: FeeQuote) -> float:
        """Fee for a trade notional at the quoted rate.

        $$\\text{fee} = \\text{total} \\times \\text{rate}$$
        """
        return total * quote.rate

    def get_fee_schedule(
        self, exchange: Union[str, Exchange], market: Union[str, Market]
    ) -> Optional[FeeSchedule]:
        """Get the schedule for one exchange/market cell, if listed."""
        return self.fee_table.get(_name(exchange), {}).get(_name(market))
