"""Fee configuration for the trading system.

This module holds the built-in exchange fee table and the parser that
turns the ``fees`` section of the YAML configuration into domain
``FeeSchedule`` objects.
"""

from typing import Dict

from .models import FeeSchedule

FeeTable = Dict[str, Dict[str, FeeSchedule]]


def load_fee_table_from_config(config: Dict) -> FeeTable:
    """Load the exchange fee table from a configuration dictionary.

    Parameters
    ----------
    config : Dict
        Configuration dictionary with a 'fees' section

    Returns
    -------
    FeeTable
        Mapping exchange -> market -> fee schedule

    Raises
    ------
    ValueError
        If a market entry is missing its maker or taker rate, or a rate
        is negative or not below 1

    Notes
    -----
    Expected configuration structure:
    ```yaml
    fees:
      Binance:
        Spot:
          maker: 0.001
          taker: 0.001
        Futures:
          maker: 0.0002
          taker: 0.0005
      Other: {}
    ```

    Exchanges with an empty mapping are kept so that every lookup on
    them resolves to a zero rate.

    Examples
    --------
    >>> table = load_fee_table_from_config(
    ...     {"fees": {"Bybit": {"Spot": {"maker": 0.001, "taker": 0.001}}}}
    ... )
    >>> table["Bybit"]["Spot"].taker
    0.001
    """
    fee_table: FeeTable = {}

    fees_config = config.get("fees", {}) or {}
    for exchange_name, markets in fees_config.items():
        fee_table[exchange_name] = {}
        for market_name, rates in (markets or {}).items():
            missing = [k for k in ("maker", "taker") if k not in rates]
            if missing:
                raise ValueError(
                    f"Missing fee rates {missing} for "
                    f"{exchange_name} / {market_name}"
                )
            for liquidity_type in ("maker", "taker"):
                rate = rates[liquidity_type]
                if not isinstance(rate, (int, float)) or not 0 <= rate < 1:
                    raise ValueError(
                        f"Invalid {liquidity_type} rate {rate!r} for "
                        f"{exchange_name} / {market_name}. "
                        "Rates must be fractions in [0, 1)."
                    )
            fee_table[exchange_name][market_name] = FeeSchedule(
                maker=float(rates["maker"]),
                taker=float(rates["taker"]),
            )

    return fee_table


def get_default_fee_table() -> FeeTable:
    """Get the built-in fee table.

    Returns
    -------
    FeeTable
        Published base-tier rates for the supported exchanges

    Notes
    -----
    Used whenever the configuration file carries no ``fees`` section.
    Bybit has no margin entries, so margin trades there resolve to 0
    unless they are redirected to the futures schedule.
    """
    return {
        "Binance": {
            "Spot": FeeSchedule(maker=0.001, taker=0.001),
            "Futures": FeeSchedule(maker=0.0002, taker=0.0005),
            "Cross Margin": FeeSchedule(maker=0.001, taker=0.001),
            "Isolated Margin": FeeSchedule(maker=0.001, taker=0.001),
            "Options": FeeSchedule(maker=0.0002, taker=0.0002),
        },
        "Bybit": {
            "Spot": FeeSchedule(maker=0.001, taker=0.001),
            "Futures": FeeSchedule(maker=0.0001, taker=0.0006),
            "Options": FeeSchedule(maker=0.0002, taker=0.0005),
        },
        "Other": {},
    }
