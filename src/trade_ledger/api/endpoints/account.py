"""Account-level analytics endpoints."""

from fastapi import APIRouter, Depends

from ...domain.positions import PositionManagementService
from ...domain.positions.analytics import cumulative_pnl_series, portfolio_overview
from ...infrastructure.api.models import ApiResponse
from ..dependencies import get_position_service
from ..responses import dataclass_to_dict, new_request_id, success

router = APIRouter(prefix="/account", tags=["account"])


@router.get("/overview", response_model=ApiResponse)
async def get_overview(
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Headline statistics over the active positions.

    Notes
    -----
    Realized PnL and win rate count closed positions only. A position
    wins when its net PnL after fees is positive.
    """
    request_id = new_request_id()
    overview = portfolio_overview(
        position_service.list_positions(), stats_fn=position_service.compute_stats
    )
    return success(request_id, {"overview": dataclass_to_dict(overview)})


@router.get("/pnl-series", response_model=ApiResponse)
async def get_pnl_series(
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Cumulative net PnL after each trade, oldest first."""
    request_id = new_request_id()
    series = cumulative_pnl_series(
        position_service.list_positions(), stats_fn=position_service.compute_stats
    )
    return success(
        request_id, {"points": [dataclass_to_dict(point) for point in series]}
    )
