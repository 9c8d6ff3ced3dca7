"""Trade entry calculator and fee quote endpoints.

These endpoints are pure: they compute quantities and fees for an entry
form without touching any position.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...constants.errors import ErrorCodes, ErrorMessages
from ...domain.positions import (
    PositionManagementService,
    TradeEntryCalculator,
    TradingFeeService,
)
from ...domain.positions.models import Exchange, Market, OrderType, split_pair
from ...domain.positions.trade_entry import (
    amount_for_percentage,
    closing_from_amount,
    closing_from_total,
    is_force_close_eligible,
    preview_borrowing,
    reprice_closing,
)
from ...infrastructure.api.models import (
    ApiResponse,
    CloseCalcRequest,
    EntryCalcRequest,
)
from ...infrastructure.config.models import EngineConfig
from ..dependencies import get_engine_config, get_fee_service, get_position_service
from ..responses import dataclass_to_dict, failure, new_request_id, success

router = APIRouter(tags=["calculator"])


@router.post("/calculator/entry", response_model=ApiResponse)
async def calculate_entry(
    entry_request: EntryCalcRequest,
    engine_config: EngineConfig = Depends(get_engine_config),
):
    """Derive principal, amount and total from the one field typed.

    Parameters
    ----------
    entry_request : EntryCalcRequest
        Market, authoritative field, typed value, price and leverage

    Returns
    -------
    ApiResponse
        The full quantity tuple, the field actually used and, for
        leveraged buys and sells, the loan the trade would draw

    Notes
    -----
    Principal is not an input on non-leveraged markets; a principal
    request there is treated as a total.

    TradingContext
    --------------
    On a margin market the trader commits principal and the exchange
    lends the rest: $total = principal \\times L$. The borrowing preview
    shows the quote currency borrowed for a buy and the base units
    borrowed for a short sale.
    """
    request_id = new_request_id()
    calc = TradeEntryCalculator(
        entry_request.market,
        price=entry_request.price,
        leverage=entry_request.leverage,
        active_field=entry_request.active_field,
        value=entry_request.value,
        leveraged_markets=engine_config.leveraged_markets,
    )
    quantities = calc.quantities

    data = {
        "active_field": calc.active_field.value,
        "leverage": calc.leverage_value,
        "is_leveraged": calc.is_leveraged,
        "quantities": dataclass_to_dict(quantities),
        "borrowing": None,
    }
    if entry_request.action is not None and calc.is_leveraged:
        base, quote = split_pair(entry_request.pair)
        preview = preview_borrowing(entry_request.action, quantities, base, quote)
        data["borrowing"] = dataclass_to_dict(preview)

    return success(request_id, data)


@router.post("/calculator/close", response_model=ApiResponse)
async def calculate_close(
    close_request: CloseCalcRequest,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Quantities for a trade that reduces a position.

    ``percentage`` takes precedence over ``amount``, which takes
    precedence over ``total``. Sending both ``amount`` and ``total`` is a
    price edit on a filled-in form: the amount stays fixed and the total
    is recomputed at the new price. When a position is given, the
    response reports whether the amount is eligible for force-close.
    """
    request_id = new_request_id()

    remaining: Optional[float] = None
    if close_request.position_id is not None:
        try:
            remaining = position_service.remaining_amount(close_request.position_id)
        except KeyError:
            return failure(
                request_id,
                ErrorCodes.POSITION_NOT_FOUND,
                ErrorMessages.POSITION_NOT_FOUND,
                {"position_id": close_request.position_id},
            )

    if close_request.percentage is not None:
        if remaining is None:
            return failure(
                request_id,
                ErrorCodes.POSITION_NOT_FOUND,
                "A position is required to close by percentage",
            )
        amount = amount_for_percentage(remaining, close_request.percentage)
        quantities = closing_from_amount(amount, close_request.price)
    elif close_request.amount is not None and close_request.total is not None:
        quantities = reprice_closing(close_request.amount, close_request.price)
    elif close_request.amount is not None:
        quantities = closing_from_amount(close_request.amount, close_request.price)
    elif close_request.total is not None:
        quantities = closing_from_total(close_request.total, close_request.price)
    else:
        return failure(
            request_id,
            ErrorCodes.INVALID_AMOUNT,
            "One of percentage, amount or total is required",
        )

    data = {
        "quantities": dataclass_to_dict(quantities),
        "remaining_amount": remaining,
        "force_close_eligible": (
            is_force_close_eligible(quantities.amount, remaining)
            if remaining is not None
            else False
        ),
    }
    return success(request_id, data)


@router.get("/fees/quote", response_model=ApiResponse)
async def quote_fee(
    exchange: Exchange,
    market: Market,
    order_type: OrderType,
    is_futures: Optional[bool] = None,
    manual_rate_percent: Optional[float] = None,
    total: Optional[float] = None,
    fee_service: TradingFeeService = Depends(get_fee_service),
):
    """Resolve the fee rate and type for an order, and the fee on a total."""
    request_id = new_request_id()
    quote = fee_service.resolve_fee(
        exchange,
        market,
        order_type,
        is_futures=is_futures,
        manual_rate_percent=manual_rate_percent,
    )
    return success(
        request_id,
        {
            "rate": quote.rate,
            "fee_type": quote.fee_type.value,
            "liquidity_type": fee_service.determine_liquidity_type(order_type),
            "effective_market": fee_service.effective_market(market, is_futures),
            "fee": (
                fee_service.calculate_fee(total, quote) if total is not None else None
            ),
        },
    )
