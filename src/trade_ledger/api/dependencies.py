"""FastAPI dependency injection functions for service layer access.

Services are created once during application startup and stored in
``app.state``. Endpoints reach them through these functions, which
keeps endpoints free of module-level globals and lets tests swap in
mocks via ``app.dependency_overrides``.

Examples
--------
>>> @router.get("/positions")
>>> async def list_positions(
...     position_service: PositionManagementService = Depends(
...         get_position_service
...     ),
... ) -> ApiResponse:
...     ...
"""

from fastapi import Request

from ..domain.positions import PositionManagementService, TradingFeeService
from ..domain.validation import TradeSubmissionValidator
from ..infrastructure.config.models import EngineConfig


def get_fee_service(request: Request) -> TradingFeeService:
    """Dependency to get the fee service from app state.

    Parameters
    ----------
    request : Request
        FastAPI request object containing app reference

    Returns
    -------
    TradingFeeService
        The fee service configured at startup

    Raises
    ------
    AttributeError
        If the fee service is not found in app state
    """
    return request.app.state.fee_service


def get_position_service(request: Request) -> PositionManagementService:
    """FastAPI dependency to retrieve the PositionManagementService.

    The service owns the active positions and the ledger. A single
    instance lives for the whole application lifetime so every request
    sees the same state.

    Parameters
    ----------
    request : Request
        FastAPI request object containing application state

    Returns
    -------
    PositionManagementService
        The service stored in ``request.app.state.position_service``

    Raises
    ------
    AttributeError
        If the service was not initialized during startup
    """
    return request.app.state.position_service


def get_validator(request: Request) -> TradeSubmissionValidator:
    """Dependency to get the trade submission validator from app state."""
    return request.app.state.validator


def get_engine_config(request: Request) -> EngineConfig:
    """Dependency to get the engine flags loaded at startup."""
    return request.app.state.engine_config
