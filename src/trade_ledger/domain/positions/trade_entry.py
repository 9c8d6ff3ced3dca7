"""Trade entry arithmetic.

Turns one authoritative user input (principal, amount or total) plus
price and leverage into a complete quantity tuple, and provides the
helpers used when entering trades that reduce an existing position.

The calculator performs no validation. Callers validate the resulting
draft at submission time.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Union

from .models import (
    FORCE_CLOSE_EPSILON,
    EntryField,
    Market,
    TradeAction,
    TradeDraft,
)

LEVERAGED_MARKETS = (Market.CROSS_MARGIN.value, Market.ISOLATED_MARGIN.value)


@dataclass(frozen=True)
class EntryQuantities:
    """Complete quantity tuple for a trade entry."""

    price: float
    amount: float
    total: float
    principal: float

    def get(self, entry_field: EntryField) -> float:
        """Value of one of the three entry fields."""
        return getattr(self, EntryField(entry_field).value)


@dataclass(frozen=True)
class BorrowingPreview:
    """Margin loan an opening trade would draw."""

    amount: float
    currency: str


def is_leveraged_market(
    market: Union[str, Market], leveraged_markets: Iterable[str] = LEVERAGED_MARKETS
) -> bool:
    """Check whether leverage applies to a market."""
    name = market.value if isinstance(market, Market) else market
    return name in leveraged_markets


def effective_leverage(
    market: Union[str, Market],
    leverage: Optional[float],
    leveraged_markets: Iterable[str] = LEVERAGED_MARKETS,
) -> float:
    """Leverage to use in entry arithmetic; 1 for non-leveraged markets."""
    if not is_leveraged_market(market, leveraged_markets):
        return 1.0
    if leverage is None or leverage < 1:
        return 1.0
    return float(leverage)


def compute_entry(
    active_field: EntryField, value: float, price: float, leverage: float = 1.0
) -> EntryQuantities:
    """Derive the full quantity tuple from the authoritative field.

    Parameters
    ----------
    active_field : EntryField
        Which of principal, amount or total the user typed
    value : float
        The typed value
    price : float
        Execution price in quote currency
    leverage : float
        Effective leverage, 1 for non-leveraged markets

    Returns
    -------
    EntryQuantities
        Price, amount, total and principal. All zero (price kept) when
        the value or price is not positive.

    Notes
    -----
    The three modes are:

    - principal: $total = principal \\times L$, $amount = total / price$
    - amount: $total = amount \\times price$, $principal = total / L$
    - total: $amount = total / price$, $principal = total / L$

    Examples
    --------
    >>> compute_entry(EntryField.PRINCIPAL, 50, price=100, leverage=2)
    EntryQuantities(price=100, amount=1.0, total=100, principal=50)
    """
    if value <= 0 or price <= 0:
        return EntryQuantities(price=price, amount=0.0, total=0.0, principal=0.0)

    leverage = leverage if leverage and leverage >= 1 else 1.0
    active_field = EntryField(active_field)

    if active_field == EntryField.PRINCIPAL:
        principal = value
        total = principal * leverage
        amount = total / price
    elif active_field == EntryField.AMOUNT:
        amount = value
        total = amount * price
        principal = total / leverage
    else:
        total = value
        amount = total / price
        principal = total / leverage

    return EntryQuantities(
        price=price, amount=amount, total=total, principal=principal
    )


def closing_from_amount(amount: float, price: float) -> EntryQuantities:
    """Closing trade quantities when the amount is edited."""
    total = amount * price if amount > 0 and price > 0 else 0.0
    return EntryQuantities(price=price, amount=amount, total=total, principal=0.0)


def closing_from_total(total: float, price: float) -> EntryQuantities:
    """Closing trade quantities when the total is edited."""
    amount = total / price if total > 0 and price > 0 else 0.0
    return EntryQuantities(price=price, amount=amount, total=total, principal=0.0)


def reprice_closing(amount: float, price: float) -> EntryQuantities:
    """Recompute a closing trade's total after a price edit, amount fixed."""
    return closing_from_amount(amount, price)


def amount_for_percentage(remaining_amount: float, percentage: float) -> float:
    """Amount that closes a percentage of the remaining exposure.

    The percentage is clamped to 1-100 and the result is rounded to
    8 decimals.
    """
    percentage = min(max(percentage, 1.0), 100.0)
    return round(abs(remaining_amount) * percentage / 100, 8)


def is_force_close_eligible(
    submitted_amount: float, remaining_amount: float
) -> bool:
    """Whether a closing amount differs from the remainder only by float noise.

    True when $0 < |submitted - |remaining|| < 10^{-6}$.
    """
    if submitted_amount == 0 or remaining_amount == 0:
        return False
    difference = abs(submitted_amount - abs(remaining_amount))
    return 0 < difference < FORCE_CLOSE_EPSILON


def apply_force_close(draft: TradeDraft, remaining_amount: float) -> TradeDraft:
    """Snap a closing draft to exactly the remaining exposure.

    Amount becomes ``|remaining_amount|``; total and fee are recomputed
    from it so the position can reach an exact zero remainder.
    """
    amount = abs(remaining_amount)
    total = amount * draft.price
    return replace(draft, amount=amount, total=total, fee=total * draft.fee_rate)


def preview_borrowing(
    action: Union[str, TradeAction],
    quantities: EntryQuantities,
    base_currency: str,
    quote_currency: str,
) -> BorrowingPreview:
    """Loan an opening trade on a leveraged market would draw.

    A buy borrows the quote currency beyond the principal. A sell
    borrows base units beyond what the principal covers at the price.
    """
    if TradeAction(action) == TradeAction.BUY:
        return BorrowingPreview(
            amount=quantities.total - quantities.principal,
            currency=quote_currency,
        )
    if quantities.price <= 0:
        return BorrowingPreview(amount=0.0, currency=base_currency)
    margin_in_base = quantities.principal / quantities.price
    return BorrowingPreview(
        amount=max(0.0, quantities.amount - margin_in_base),
        currency=base_currency,
    )


class TradeEntryCalculator:
    """Stateful wrapper around ``compute_entry`` for an entry form.

    Holds which field is authoritative and its typed value. Switching
    the active field carries the previously computed value of the new
    field forward, so toggling never loses information.

    Parameters
    ----------
    market : Union[str, Market]
        Market the entry is for; principal is only selectable on
        leveraged markets
    price : float
        Current price input
    leverage : Optional[float]
        Leverage input, ignored on non-leveraged markets
    active_field : Optional[EntryField]
        Initial authoritative field; principal on leveraged markets,
        total otherwise
    value : float
        Initial typed value

    Examples
    --------
    >>> calc = TradeEntryCalculator("Isolated Margin", price=100, leverage=2)
    >>> calc.set_value(50)
    >>> calc.quantities.amount
    1.0
    >>> calc.switch_active_field(EntryField.TOTAL)
    >>> calc.value
    100.0
    """

    def __init__(
        self,
        market: Union[str, Market],
        price: float = 0.0,
        leverage: Optional[float] = None,
        active_field: Optional[EntryField] = None,
        value: float = 0.0,
        leveraged_markets: Iterable[str] = LEVERAGED_MARKETS,
    ):
        self.leveraged_markets = tuple(leveraged_markets)
        self.market = market
        self.price = price
        self.leverage = leverage
        self.value = value
        if active_field is None:
            active_field = (
                EntryField.PRINCIPAL if self.is_leveraged else EntryField.TOTAL
            )
        self.active_field = self._allowed(EntryField(active_field))

    @property
    def is_leveraged(self) -> bool:
        return is_leveraged_market(self.market, self.leveraged_markets)

    @property
    def leverage_value(self) -> float:
        return effective_leverage(self.market, self.leverage, self.leveraged_markets)

    @property
    def quantities(self) -> EntryQuantities:
        """Current quantity tuple."""
        return compute_entry(
            self.active_field, self.value, self.price, self.leverage_value
        )

    def set_value(self, value: float) -> None:
        self.value = value

    def set_price(self, price: float) -> None:
        self.price = price

    def set_leverage(self, leverage: Optional[float]) -> None:
        self.leverage = leverage

    def set_market(self, market: Union[str, Market]) -> None:
        """Change market; principal mode falls back to total off-margin."""
        before = self.quantities
        self.market = market
        if self.active_field != self._allowed(self.active_field):
            self.value = before.total
            self.active_field = EntryField.TOTAL

    def switch_active_field(self, new_field: EntryField) -> None:
        """Make another field authoritative, carrying its value forward."""
        new_field = self._allowed(EntryField(new_field))
        self.value = self.quantities.get(new_field)
        self.active_field = new_field

    def _allowed(self, entry_field: EntryField) -> EntryField:
        if entry_field == EntryField.PRINCIPAL and not self.is_leveraged:
            return EntryField.TOTAL
        return entry_field
