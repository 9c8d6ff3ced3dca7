"""Trade submission validation.

Checks a trade draft at the submission boundary, before it reaches the
position service. Checks run in order and stop at the first violation;
the result carries an error code and a human-readable message instead
of raising.
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from ...constants.errors import ErrorCodes, ErrorMessages
from ..positions.models import PositionKey, TradeDraft
from ..positions.trade_entry import LEVERAGED_MARKETS, is_leveraged_market


@dataclass
class ValidationResult:
    """Result of validating a trade submission.

    Parameters
    ----------
    is_valid : bool
        Whether the draft may be logged
    error_code : Optional[str]
        Machine-readable code of the first violation
    error_message : Optional[str]
        Human-readable description of the first violation
    """

    is_valid: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class SubmissionContext:
    """Everything a submission check needs to look at."""

    key: PositionKey
    draft: TradeDraft
    is_opening: bool
    is_leveraged: bool


Check = Callable[[SubmissionContext], Optional[ValidationResult]]


def _reject(code: str, message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error_code=code, error_message=message)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not math.isnan(value)


def check_pair(context: SubmissionContext) -> Optional[ValidationResult]:
    """Pair must be non-empty and of the form BASE/QUOTE."""
    pair = context.key.pair or ""
    parts = pair.split("/")
    if not pair.strip() or len(parts) != 2 or not all(p.strip() for p in parts):
        return _reject(
            ErrorCodes.INVALID_PAIR,
            f"Invalid pair: '{pair}'. Expected BASE/QUOTE, e.g. BTC/USDT",
        )
    return None


def check_price(context: SubmissionContext) -> Optional[ValidationResult]:
    price = context.draft.price
    if not _is_number(price) or price <= 0:
        return _reject(
            ErrorCodes.INVALID_PRICE,
            ErrorMessages.format_invalid_field("price", price),
        )
    return None


def check_amount(context: SubmissionContext) -> Optional[ValidationResult]:
    amount = context.draft.amount
    if not _is_number(amount) or amount <= 0:
        return _reject(
            ErrorCodes.INVALID_AMOUNT,
            ErrorMessages.format_invalid_field("amount", amount),
        )
    return None


def check_total(context: SubmissionContext) -> Optional[ValidationResult]:
    total = context.draft.total
    if not _is_number(total) or total < 0:
        return _reject(
            ErrorCodes.INVALID_TOTAL,
            ErrorMessages.format_invalid_field("total", total),
        )
    return None


def check_principal(context: SubmissionContext) -> Optional[ValidationResult]:
    """Opening trades must commit a positive principal."""
    if not context.is_opening:
        return None
    principal = context.draft.principal
    if principal is None:
        # Drafts without a principal commit their notional at 1x or the given leverage
        leverage = context.draft.leverage or 1.0
        principal = context.draft.total / leverage if leverage > 0 else 0.0
    if not _is_number(principal) or principal <= 0:
        return _reject(
            ErrorCodes.INVALID_PRINCIPAL,
            ErrorMessages.format_invalid_field("principal", principal),
        )
    return None


def check_leverage(context: SubmissionContext) -> Optional[ValidationResult]:
    """Leverage must be >= 1 and only used on leveraged markets."""
    leverage = context.draft.leverage
    if leverage is None:
        return None
    if not _is_number(leverage) or leverage < 1:
        return _reject(
            ErrorCodes.INVALID_LEVERAGE,
            ErrorMessages.format_invalid_field("leverage", leverage),
        )
    if leverage > 1 and not context.is_leveraged:
        return _reject(
            ErrorCodes.LEVERAGE_NOT_SUPPORTED,
            f"Leverage {leverage}x is not supported on "
            f"{context.key.market.value} markets",
        )
    return None


DEFAULT_CHECKS: List[Check] = [
    check_pair,
    check_price,
    check_amount,
    check_total,
    check_principal,
    check_leverage,
]


class TradeSubmissionValidator:
    """Validates trade drafts before they are logged.

    Parameters
    ----------
    leveraged_markets : Iterable[str]
        Markets on which leverage above 1 is accepted
    checks : Optional[List[Check]]
        Checks to run in order; defaults to ``DEFAULT_CHECKS``

    Notes
    -----
    Applies checks sequentially, returning on the first violation. A
    rejected draft causes no mutation.

    Examples
    --------
    >>> validator = TradeSubmissionValidator()
    >>> result = validator.validate(key, draft, is_opening=True)
    >>> result.is_valid
    True
    """

    def __init__(
        self,
        leveraged_markets: Iterable[str] = LEVERAGED_MARKETS,
        checks: Optional[List[Check]] = None,
    ):
        self.leveraged_markets = tuple(leveraged_markets)
        self.checks = checks if checks is not None else list(DEFAULT_CHECKS)

    def validate(
        self, key: PositionKey, draft: TradeDraft, is_opening: bool
    ) -> ValidationResult:
        """Validate a draft for the position identified by ``key``."""
        context = SubmissionContext(
            key=key,
            draft=draft,
            is_opening=is_opening,
            is_leveraged=is_leveraged_market(key.market, self.leveraged_markets),
        )
        for check in self.checks:
            result = check(context)
            if result is not None:
                return result
        return ValidationResult(is_valid=True)
