"""Position tracking, fee resolution and trade entry domain."""

from .aggregator import PositionStats, TradeBreakdown, aggregate
from .fee_service import TradingFeeService
from .models import (
    FeeQuote,
    FeeSchedule,
    Position,
    PositionKey,
    Trade,
    TradeDraft,
)
from .position_service import PositionManagementService
from .trade_entry import TradeEntryCalculator, compute_entry

__all__ = [
    "PositionManagementService",
    "TradingFeeService",
    "TradeEntryCalculator",
    "PositionStats",
    "TradeBreakdown",
    "aggregate",
    "compute_entry",
    "FeeQuote",
    "FeeSchedule",
    "Position",
    "PositionKey",
    "Trade",
    "TradeDraft",
]
