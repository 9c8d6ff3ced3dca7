"""Pydantic models for REST API requests and responses."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ...domain.positions.models import (
    EntryField,
    Exchange,
    Market,
    OrderType,
    TradeAction,
)


class ApiError(BaseModel):
    """Error details for failed API requests."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error context"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "LEVERAGE_NOT_SUPPORTED",
                "message": "Leverage 3.0x is not supported on Spot markets",
                "details": {"market": "Spot", "leverage": 3.0},
            }
        }
    }


class ApiResponse(BaseModel):
    """Generic API response for all operations.

    This unified response structure is used for both successful and failed
    operations, providing a consistent interface for clients.
    """

    success: bool = Field(..., description="Whether the request succeeded")
    request_id: str = Field(..., description="Server-generated request ID")
    data: Optional[Dict[str, Any]] = Field(
        default=None, description="Response data"
    )
    error: Optional[ApiError] = Field(
        default=None, description="Error details if failed"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Server timestamp"
    )

    model_config = {
        "json_schema_extra": {
            "examples": {
                "success": {
                    "value": {
                        "success": True,
                        "request_id": "req_1705312801.001",
                        "data": {"position_id": "6f1c..."},
                        "error": None,
                        "timestamp": "2024-01-15T10:00:01.001Z",
                    }
                },
                "failure": {
                    "value": {
                        "success": False,
                        "request_id": "req_1705312801.001",
                        "data": None,
                        "error": {
                            "code": "POSITION_NOT_FOUND",
                            "message": "Position not found",
                            "details": {"position_id": "6f1c..."},
                        },
                        "timestamp": "2024-01-15T10:00:01.001Z",
                    }
                },
            }
        }
    }


class TradeRequest(BaseModel):
    """Request model for logging a trade."""

    pair: str = Field(..., description="Trading pair, BASE/QUOTE")
    exchange: Exchange = Field(..., description="Exchange the trade ran on")
    market: Market = Field(..., description="Market segment")
    is_futures: Optional[bool] = Field(
        None, description="Futures flag for margin positions"
    )
    action: TradeAction = Field(..., description="Buy or Sell")
    order_type: OrderType = Field(OrderType.LIMIT, description="Order type")
    price: float = Field(..., description="Execution price in quote currency")
    amount: float = Field(..., description="Quantity in base currency")
    total: Optional[float] = Field(
        None, description="Quote notional; defaults to price x amount"
    )
    principal: Optional[float] = Field(
        None, description="Margin committed by an opening trade"
    )
    leverage: Optional[float] = Field(None, description="Leverage multiplier")
    timestamp: Optional[datetime] = Field(
        None, description="Execution time; defaults to now"
    )
    manual_fee_rate_percent: Optional[float] = Field(
        None, ge=0, lt=100, description="Fee rate in percent for the manual exchange"
    )
    position_id: Optional[str] = Field(
        None, description="Explicit target position"
    )
    force_close: bool = Field(
        False, description="Snap the amount to the exact remainder"
    )
    account_balance: Optional[float] = Field(
        None, description="Account balance for cross margin positions"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "pair": "BTC/USDT",
                "exchange": "Binance",
                "market": "Isolated Margin",
                "action": "Buy",
                "order_type": "Limit",
                "price": 40000.0,
                "amount": 0.05,
                "principal": 1000.0,
                "leverage": 2.0,
            }
        }
    }


class EditTradeRequest(BaseModel):
    """Request model for replacing an existing trade."""

    action: TradeAction
    order_type: OrderType = OrderType.LIMIT
    price: float
    amount: float
    total: Optional[float] = None
    leverage: Optional[float] = None
    timestamp: Optional[datetime] = None
    manual_fee_rate_percent: Optional[float] = Field(None, ge=0, lt=100)


class LedgerSaveRequest(BaseModel):
    """Request model for saving a closed position to the ledger."""

    notes: str = Field("", description="Review notes for the trade")


class EntryCalcRequest(BaseModel):
    """Request model for opening-trade entry arithmetic."""

    market: Market
    active_field: EntryField = Field(
        ..., description="Which of principal, amount or total was typed"
    )
    value: float
    price: float
    leverage: Optional[float] = None
    action: Optional[TradeAction] = Field(
        None, description="When given, a borrowing preview is included"
    )
    pair: str = ""

    model_config = {
        "json_schema_extra": {
            "example": {
                "market": "Cross Margin",
                "active_field": "principal",
                "value": 500.0,
                "price": 2500.0,
                "leverage": 3.0,
                "action": "Buy",
                "pair": "ETH/USDT",
            }
        }
    }


class CloseCalcRequest(BaseModel):
    """Request model for closing-trade quantities.

    One of ``amount``, ``total`` or ``percentage`` drives the result;
    ``percentage`` needs ``position_id``. ``amount`` together with
    ``total`` reprices the form with the amount held fixed.
    """

    price: float
    amount: Optional[float] = None
    total: Optional[float] = None
    percentage: Optional[float] = None
    position_id: Optional[str] = None
