"""Trade logging and position management endpoints.

This module provides the REST endpoints that mutate the active position
set: logging trades, editing and deleting them, deleting positions and
saving closed positions to the ledger.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ...constants.errors import ErrorCodes, ErrorMessages
from ...domain.positions import (
    Position,
    PositionKey,
    PositionManagementService,
    TradeDraft,
    TradingFeeService,
)
from ...domain.validation import TradeSubmissionValidator
from ...infrastructure.api.models import (
    ApiResponse,
    EditTradeRequest,
    LedgerSaveRequest,
    TradeRequest,
)
from ..dependencies import get_fee_service, get_position_service, get_validator
from ..responses import (
    dataclass_to_dict,
    failure,
    new_request_id,
    normalize_timestamp,
    position_to_dict,
    success,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["positions"])


def _position_not_found(request_id: str, position_id: str) -> ApiResponse:
    return failure(
        request_id,
        ErrorCodes.POSITION_NOT_FOUND,
        ErrorMessages.POSITION_NOT_FOUND,
        {"position_id": position_id},
    )


def _lookup(
    position_service: PositionManagementService, position_id: str
) -> Optional[Position]:
    try:
        return position_service.get_position(position_id)
    except KeyError:
        return None


@router.post("/trades", response_model=ApiResponse)
async def log_trade(
    trade_request: TradeRequest,
    position_service: PositionManagementService = Depends(get_position_service),
    fee_service: TradingFeeService = Depends(get_fee_service),
    validator: TradeSubmissionValidator = Depends(get_validator),
):
    """Log a trade, creating its position when no active position matches.

    Parameters
    ----------
    trade_request : TradeRequest
        Trade details, optional explicit position and force-close flag

    Returns
    -------
    ApiResponse
        Success response with the stored trade and the updated position,
        or a validation error

    Notes
    -----
    The fee is resolved from the exchange, market and order type and
    charged on the trade total. A rejected submission changes nothing.

    TradingContext
    --------------
    Whether a trade opens or reduces exposure depends on the position it
    lands in. Only opening trades commit principal, so the principal
    check runs against the direction of the matched position.
    """
    request_id = new_request_id()

    key = PositionKey(
        pair=trade_request.pair.strip(),
        exchange=trade_request.exchange,
        market=trade_request.market,
        is_futures=trade_request.is_futures,
    )

    try:
        is_opening = position_service.is_opening_action(
            trade_request.action, key=key, position_id=trade_request.position_id
        )
    except KeyError:
        return _position_not_found(request_id, trade_request.position_id)

    if trade_request.position_id is not None:
        target = position_service.get_position(trade_request.position_id)
        if target.key != key:
            return failure(
                request_id,
                ErrorCodes.POSITION_KEY_MISMATCH,
                ErrorMessages.POSITION_KEY_MISMATCH,
                {
                    "position_id": target.position_id,
                    "position_pair": target.pair,
                    "position_exchange": target.exchange.value,
                    "position_market": target.market.value,
                },
            )

    total = trade_request.total
    if total is None:
        total = trade_request.price * trade_request.amount

    quote = fee_service.resolve_fee(
        trade_request.exchange,
        trade_request.market,
        trade_request.order_type,
        is_futures=trade_request.is_futures,
        manual_rate_percent=trade_request.manual_fee_rate_percent,
    )

    draft = TradeDraft(
        action=trade_request.action,
        price=trade_request.price,
        amount=trade_request.amount,
        total=total,
        fee=fee_service.calculate_fee(total, quote),
        fee_rate=quote.rate,
        fee_type=quote.fee_type,
        timestamp=normalize_timestamp(trade_request.timestamp),
        order_type=trade_request.order_type,
        leverage=trade_request.leverage,
        principal=trade_request.principal,
    )

    result = validator.validate(key, draft, is_opening=is_opening)
    if not result.is_valid:
        logger.debug(f"Rejected trade for {key.pair}: {result.error_message}")
        return failure(
            request_id,
            result.error_code,
            result.error_message,
            {"pair": key.pair, "market": key.market.value},
        )

    position, trade = position_service.add_trade(
        key,
        draft,
        position_id=trade_request.position_id,
        force_close=trade_request.force_close,
        account_balance=trade_request.account_balance,
    )
    stats = position_service.compute_stats(position)

    return success(
        request_id,
        {
            "position_id": position.position_id,
            "trade_id": trade.trade_id,
            "trade": dataclass_to_dict(trade),
            "position": position_to_dict(position, stats),
        },
    )


@router.get("/positions", response_model=ApiResponse)
async def list_positions(
    position_service: PositionManagementService = Depends(get_position_service),
):
    """List active positions, newest first, each with its statistics."""
    request_id = new_request_id()
    positions = [
        position_to_dict(position, position_service.compute_stats(position))
        for position in position_service.list_positions()
    ]
    return success(request_id, {"positions": positions})


@router.get("/positions/{position_id}", response_model=ApiResponse)
async def get_position(
    position_id: str,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Get one active position with its statistics."""
    request_id = new_request_id()
    position = _lookup(position_service, position_id)
    if position is None:
        return _position_not_found(request_id, position_id)

    stats = position_service.compute_stats(position)
    return success(request_id, {"position": position_to_dict(position, stats)})


@router.put("/positions/{position_id}/trades/{trade_id}", response_model=ApiResponse)
async def edit_trade(
    position_id: str,
    trade_id: str,
    edit_request: EditTradeRequest,
    position_service: PositionManagementService = Depends(get_position_service),
    fee_service: TradingFeeService = Depends(get_fee_service),
    validator: TradeSubmissionValidator = Depends(get_validator),
):
    """Replace a trade, keeping its id.

    The fee is re-resolved for the edited order type and total. If the
    edit changes which trade comes first, the position's direction
    changes with it.
    """
    request_id = new_request_id()
    position = _lookup(position_service, position_id)
    if position is None:
        return _position_not_found(request_id, position_id)
    if position.find_trade(trade_id) is None:
        return failure(
            request_id,
            ErrorCodes.TRADE_NOT_FOUND,
            ErrorMessages.TRADE_NOT_FOUND,
            {"position_id": position_id, "trade_id": trade_id},
        )

    total = edit_request.total
    if total is None:
        total = edit_request.price * edit_request.amount

    quote = fee_service.resolve_fee(
        position.exchange,
        position.market,
        edit_request.order_type,
        is_futures=position.is_futures,
        manual_rate_percent=edit_request.manual_fee_rate_percent,
    )
    original = position.find_trade(trade_id)
    draft = TradeDraft(
        action=edit_request.action,
        price=edit_request.price,
        amount=edit_request.amount,
        total=total,
        fee=fee_service.calculate_fee(total, quote),
        fee_rate=quote.rate,
        fee_type=quote.fee_type,
        timestamp=(
            normalize_timestamp(edit_request.timestamp)
            if edit_request.timestamp is not None
            else original.timestamp
        ),
        order_type=edit_request.order_type,
        leverage=edit_request.leverage,
    )

    is_opening = position_service.is_opening_action(
        edit_request.action, position_id=position_id
    )
    result = validator.validate(position.key, draft, is_opening=is_opening)
    if not result.is_valid:
        return failure(request_id, result.error_code, result.error_message)

    trade = position_service.edit_trade(position_id, trade_id, draft)
    stats = position_service.compute_stats(position)

    return success(
        request_id,
        {
            "trade": dataclass_to_dict(trade),
            "position": position_to_dict(position, stats),
        },
    )


@router.delete(
    "/positions/{position_id}/trades/{trade_id}", response_model=ApiResponse
)
async def delete_trade(
    position_id: str,
    trade_id: str,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Delete a trade. Deleting the last trade deletes the position."""
    request_id = new_request_id()
    position = _lookup(position_service, position_id)
    if position is None:
        return _position_not_found(request_id, position_id)

    try:
        position_removed = position_service.delete_trade(position_id, trade_id)
    except KeyError:
        return failure(
            request_id,
            ErrorCodes.TRADE_NOT_FOUND,
            ErrorMessages.TRADE_NOT_FOUND,
            {"position_id": position_id, "trade_id": trade_id},
        )

    return success(
        request_id,
        {
            "position_id": position_id,
            "trade_id": trade_id,
            "position_removed": position_removed,
        },
    )


@router.delete("/positions/{position_id}", response_model=ApiResponse)
async def delete_position(
    position_id: str,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Delete an active position and all its trades."""
    request_id = new_request_id()
    try:
        position_service.delete_position(position_id)
    except KeyError:
        return _position_not_found(request_id, position_id)
    return success(request_id, {"position_id": position_id})


@router.post("/positions/{position_id}/ledger", response_model=ApiResponse)
async def save_to_ledger(
    position_id: str,
    save_request: LedgerSaveRequest,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Save a closed position with review notes to the ledger.

    Returns
    -------
    ApiResponse
        The ledger entry, or POSITION_NOT_CLOSED / ALREADY_IN_LEDGER
    """
    request_id = new_request_id()
    position = _lookup(position_service, position_id)
    if position is None:
        return _position_not_found(request_id, position_id)

    stats = position_service.compute_stats(position)
    if not stats.is_closed:
        return failure(
            request_id,
            ErrorCodes.POSITION_NOT_CLOSED,
            ErrorMessages.POSITION_NOT_CLOSED,
            {"position_id": position_id, "remaining_amount": stats.remaining_amount},
        )

    if position_service.is_in_ledger(position_id):
        return failure(
            request_id,
            ErrorCodes.ALREADY_IN_LEDGER,
            ErrorMessages.ALREADY_IN_LEDGER,
            {"position_id": position_id},
        )

    entry = position_service.save_to_ledger(position_id, notes=save_request.notes)
    return success(
        request_id,
        {"entry": position_to_dict(entry, position_service.compute_stats(entry))},
    )
