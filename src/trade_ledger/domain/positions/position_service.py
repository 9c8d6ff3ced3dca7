"""Position management service.

This module owns the active position set and the ledger of saved
positions, and applies the add/edit/delete/save operations to them.
Derived statistics are never stored; reads go through the aggregator.
"""

import copy
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from .aggregator import PositionStats, aggregate, direction_of, is_opening_trade
from .models import (
    Direction,
    Market,
    Position,
    PositionKey,
    Trade,
    TradeAction,
    TradeDraft,
)
from .trade_entry import (
    LEVERAGED_MARKETS,
    apply_force_close,
    is_force_close_eligible,
)

logger = logging.getLogger(__name__)


def _first_trade_sort_key(position: Position) -> datetime:
    return position.first_trade_time or datetime.min


@dataclass(frozen=True)
class EditingState:
    """Which position (and optionally trade) an entry form is editing."""

    position_id: str
    trade_id: Optional[str] = None


class PositionManagementService:
    """Service for managing positions built from logged trades.

    The service is the single owner of the active position list and of
    the ledger. Every operation takes explicit position and trade
    identifiers. All statistics are recomputed from the current trades
    on every read, so there is no derived state to invalidate.

    Parameters
    ----------
    simulate_borrowing : bool
        Run the margin borrowing replay when computing statistics
    leveraged_markets : Iterable[str]
        Markets on which trade leverage is meaningful

    Attributes
    ----------
    _positions : List[Position]
        Active positions, newest first
    _ledger : List[Position]
        Saved copies, ordered by first trade time, newest first
    _editing : Optional[EditingState]
        Transient edit target of the entry form

    Notes
    -----
    The service is single-threaded by construction: it is driven by one
    owner at a time and holds no locks.

    TradingContext
    --------------
    A position is identified by pair, exchange, market and futures flag.
    The first trade fixes its direction. Trades in the same direction add
    exposure and trades against it reduce exposure. When the remainder
    reaches zero the position is closed and can be written to the
    ledger with review notes.

    Examples
    --------
    >>> service = PositionManagementService()
    >>> key = PositionKey("BTC/USDT", Exchange.BINANCE, Market.SPOT)
    >>> position, trade = service.add_trade(key, draft)
    >>> service.get_position_stats(position.position_id).remaining_amount
    1.0
    """

    def __init__(
        self,
        simulate_borrowing: bool = True,
        leveraged_markets: Iterable[str] = LEVERAGED_MARKETS,
    ):
        """Initialize the position management service with empty state."""
        self.simulate_borrowing = simulate_borrowing
        self.leveraged_markets = frozenset(leveraged_markets)
        self._positions: List[Position] = []
        self._ledger: List[Position] = []
        self._editing: Optional[EditingState] = None

    # Queries

    def list_positions(self) -> List[Position]:
        """Active positions, newest first."""
        return list(self._positions)

    def get_ledger(self) -> List[Position]:
        """Ledger entries, newest first by first trade time."""
        return list(self._ledger)

    def get_position(self, position_id: str) -> Position:
        """Get an active position.

        Raises
        ------
        KeyError
            If no active position has this id
        """
        return self._find(self._positions, position_id, "position")

    def get_ledger_position(self, position_id: str) -> Position:
        """Get a ledger entry by the id of the position it was saved from."""
        return self._find(self._ledger, position_id, "ledger position")

    def is_in_ledger(self, position_id: str) -> bool:
        """Whether a ledger entry exists for this position id."""
        return any(entry.position_id == position_id for entry in self._ledger)

    def find_position(self, key: PositionKey) -> Optional[Position]:
        """First active position matching a key, if any."""
        for position in self._positions:
            if position.key == key:
                return position
        return None

    def is_leveraged(self, market: Union[str, Market]) -> bool:
        name = market.value if isinstance(market, Market) else market
        return name in self.leveraged_markets

    def compute_stats(self, position: Position) -> PositionStats:
        """Aggregate a position with this service's engine flags."""
        return aggregate(
            position.trades,
            pair=position.pair,
            leveraged=self.is_leveraged(position.market),
            simulate_borrowing=self.simulate_borrowing,
        )

    def get_position_stats(self, position_id: str) -> PositionStats:
        """Statistics of an active position, recomputed from its trades."""
        return self.compute_stats(self.get_position(position_id))

    def remaining_amount(self, position_id: str) -> float:
        """Remaining exposure of an active position."""
        return self.get_position_stats(position_id).remaining_amount

    def is_opening_action(
        self,
        action: TradeAction,
        key: Optional[PositionKey] = None,
        position_id: Optional[str] = None,
    ) -> bool:
        """Whether a new trade would add exposure.

        A trade that would create a new position is always opening.
        """
        position = self._target_position(key, position_id)
        if position is None:
            return True
        direction = direction_of(position.trades)
        return direction == Direction.FLAT or is_opening_trade(
            direction, TradeAction(action)
        )

    # Editing state

    @property
    def editing(self) -> Optional[EditingState]:
        return self._editing

    def begin_edit(self, position_id: str, trade_id: Optional[str] = None) -> None:
        """Mark a position (or one of its trades) as being edited."""
        position = self.get_position(position_id)
        if trade_id is not None and position.find_trade(trade_id) is None:
            raise KeyError(f"Unknown trade: {trade_id} in position {position_id}")
        self._editing = EditingState(position_id=position_id, trade_id=trade_id)

    def cancel_edit(self) -> None:
        self._editing = None

    # Mutations

    def add_trade(
        self,
        key: PositionKey,
        draft: TradeDraft,
        position_id: Optional[str] = None,
        force_close: bool = False,
        account_balance: Optional[float] = None,
    ) -> Tuple[Position, Trade]:
        """Log a trade, creating its position when needed.

        Parameters
        ----------
        key : PositionKey
            Pair, exchange, market and futures flag of the trade
        draft : TradeDraft
            Validated trade draft
        position_id : Optional[str]
            Explicit target; when omitted the first active position
            matching ``key`` is used
        force_close : bool
            Snap the amount to the exact remainder when it differs only
            by floating-point residue
        account_balance : Optional[float]
            Recorded on new cross margin positions

        Returns
        -------
        Tuple[Position, Trade]
            The updated position and the trade as stored

        Raises
        ------
        KeyError
            If ``position_id`` is given but unknown
        ValueError
            If the position named by ``position_id`` has a different key

        Notes
        -----
        Trades are re-sorted by timestamp after insertion, so a trade
        with an earlier timestamp lands before existing ones.
        """
        if position_id is not None:
            position = self.get_position(position_id)
            if position.key != key:
                raise ValueError(
                    f"Trade for {key.pair} on {key.exchange.value} "
                    f"{key.market.value} does not match position {position_id}"
                )
        else:
            position = self.find_position(key)

        if position is None:
            position = Position(
                pair=key.pair,
                exchange=key.exchange,
                market=key.market,
                is_futures=key.is_futures,
                account_balance=(
                    account_balance if key.market == Market.CROSS_MARGIN else None
                ),
            )
            self._positions.insert(0, position)
            logger.info(
                f"Opened position {position.position_id} for {key.pair} "
                f"on {key.exchange.value} {key.market.value}"
            )
        elif force_close:
            draft = self._force_close(position, draft)

        trade = draft.to_trade()
        position.trades.append(trade)
        position.sort_trades()
        self._editing = None

        logger.debug(
            f"Added {trade.action.value} {trade.amount} @ {trade.price} "
            f"to position {position.position_id}"
        )
        return position, trade

    def edit_trade(
        self, position_id: str, trade_id: str, new_trade: Union[Trade, TradeDraft]
    ) -> Trade:
        """Replace a trade in place, keeping its id.

        Raises
        ------
        KeyError
            If the position or trade is unknown

        Notes
        -----
        If the edit moves a different trade to the front, the position's
        original direction changes with it, and PnL and borrowing are
        recomputed for the new direction.
        """
        position = self.get_position(position_id)
        index = self._trade_index(position, trade_id)

        if isinstance(new_trade, TradeDraft):
            replacement = new_trade.to_trade(trade_id=trade_id)
        else:
            replacement = replace(new_trade, trade_id=trade_id)

        before = direction_of(position.trades)
        position.trades[index] = replacement
        position.sort_trades()
        after = direction_of(position.trades)
        self._editing = None

        if before != after:
            logger.warning(
                f"Editing trade {trade_id} changed the direction of position "
                f"{position_id} from {before.value} to {after.value}"
            )
        logger.debug(f"Edited trade {trade_id} in position {position_id}")
        return replacement

    def delete_trade(self, position_id: str, trade_id: str) -> bool:
        """Remove a trade; delete the position if it was the last one.

        Returns
        -------
        bool
            True if the position itself was removed

        Raises
        ------
        KeyError
            If the position or trade is unknown
        """
        position = self.get_position(position_id)
        index = self._trade_index(position, trade_id)
        del position.trades[index]
        logger.debug(f"Deleted trade {trade_id} from position {position_id}")

        if not position.trades:
            self.delete_position(position_id)
            return True
        return False

    def delete_position(self, position_id: str) -> None:
        """Remove an active position and cancel any edit targeting it.

        Raises
        ------
        KeyError
            If the position is unknown
        """
        position = self.get_position(position_id)
        self._positions.remove(position)
        if self._editing is not None and self._editing.position_id == position_id:
            self._editing = None
        logger.info(f"Removed position {position_id}")

    def save_to_ledger(self, position_id: str, notes: str = "") -> Position:
        """Copy a position with review notes into the ledger.

        The source stays active and is flagged ``saved_to_ledger``.
        Saving the same position twice returns the existing entry.

        Returns
        -------
        Position
            The ledger entry

        Raises
        ------
        KeyError
            If the position is unknown
        """
        position = self.get_position(position_id)
        if position.saved_to_ledger:
            for entry in self._ledger:
                if entry.position_id == position_id:
                    logger.debug(f"Position {position_id} already in ledger")
                    return entry

        entry = copy.deepcopy(position)
        entry.notes = notes
        entry.saved_to_ledger = True
        self._ledger.append(entry)
        self._ledger.sort(key=_first_trade_sort_key, reverse=True)

        position.saved_to_ledger = True
        logger.info(f"Saved position {position_id} to ledger")
        return entry

    def delete_ledger_position(self, position_id: str) -> None:
        """Remove a ledger entry. The active position is left untouched.

        Raises
        ------
        KeyError
            If no ledger entry has this id
        """
        entry = self.get_ledger_position(position_id)
        self._ledger.remove(entry)
        logger.info(f"Removed ledger entry {position_id}")

    # Internals

    def _force_close(self, position: Position, draft: TradeDraft) -> TradeDraft:
        remaining = self.compute_stats(position).remaining_amount
        if not is_force_close_eligible(draft.amount, remaining):
            logger.warning(
                f"Force close ignored for position {position.position_id}: "
                f"amount {draft.amount} vs remaining {remaining}"
            )
            return draft
        return apply_force_close(draft, remaining)

    def _target_position(
        self, key: Optional[PositionKey], position_id: Optional[str]
    ) -> Optional[Position]:
        if position_id is not None:
            return self.get_position(position_id)
        if key is not None:
            return self.find_position(key)
        return None

    @staticmethod
    def _find(positions: List[Position], position_id: str, label: str) -> Position:
        for position in positions:
            if position.position_id == position_id:
                return position
        raise KeyError(f"Unknown {label}: {position_id}")

    @staticmethod
    def _trade_index(position: Position, trade_id: str) -> int:
        for index, trade in enumerate(position.trades):
            if trade.trade_id == trade_id:
                return index
        raise KeyError(
            f"Unknown trade: {trade_id} in position {position.position_id}"
        )
