"""Configuration data models.

This module defines the data structures for application configuration,
using dataclasses for type safety and clarity.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class EngineConfig:
    """Position engine configuration.

    Attributes
    ----------
    futures_fee_redirect : bool
        Price trades on a leveraged market flagged as futures with the
        exchange's futures fee schedule. Default: True.
    simulate_borrowing : bool
        Replay the simulated margin loan when computing position
        statistics. When False, borrowed totals are always zero and no
        trade carries a borrowing delta. Default: True.
    manual_exchange : str
        Exchange whose fee rate is entered by hand. Default: "Other".
    leveraged_markets : List[str]
        Markets on which trade leverage is meaningful. Leverage on any
        other market is rejected at submission and ignored by the
        aggregator. Default: Cross Margin and Isolated Margin.
    """

    futures_fee_redirect: bool = True
    simulate_borrowing: bool = True
    manual_exchange: str = "Other"
    leveraged_markets: List[str] = field(
        default_factory=lambda: ["Cross Margin", "Isolated Margin"]
    )
