"""Helpers for building ApiResponse envelopes and plain response data."""

from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..domain.positions import Position, PositionStats
from ..infrastructure.api.models import ApiError, ApiResponse


def new_request_id() -> str:
    """Generate a request ID for a response envelope."""
    return f"req_{datetime.now().timestamp()}"


def success(request_id: str, data: Optional[Dict[str, Any]] = None) -> ApiResponse:
    return ApiResponse(
        success=True,
        request_id=request_id,
        data=data,
        error=None,
        timestamp=datetime.now(),
    )


def failure(
    request_id: str,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> ApiResponse:
    """Business failure envelope, returned with HTTP 200."""
    return ApiResponse(
        success=False,
        request_id=request_id,
        data=None,
        error=ApiError(code=code, message=message, details=details),
        timestamp=datetime.now(),
    )


def to_plain(value: Any) -> Any:
    """Convert enums nested in dicts and lists to their values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


def dataclass_to_dict(obj: Any) -> Dict[str, Any]:
    return to_plain(asdict(obj))


def position_to_dict(position: Position, stats: PositionStats) -> Dict[str, Any]:
    """Serialize a position together with its derived statistics."""
    data = dataclass_to_dict(position)
    data["stats"] = dataclass_to_dict(stats)
    data["stats"]["is_open"] = stats.is_open
    return data


def normalize_timestamp(timestamp: Optional[datetime]) -> datetime:
    """Naive UTC timestamp; aware inputs are converted, None means now.

    Trades are ordered by timestamp, so every stored value must be
    comparable with every other.
    """
    if timestamp is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if timestamp.tzinfo is not None:
        return timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp
