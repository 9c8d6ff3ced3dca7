"""Ledger query, deletion and export endpoints."""

from fastapi import APIRouter, Depends

from ...constants.errors import ErrorCodes, ErrorMessages
from ...domain.positions import PositionManagementService
from ...domain.positions.analytics import export_rows
from ...infrastructure.api.models import ApiResponse
from ..dependencies import get_position_service
from ..responses import (
    dataclass_to_dict,
    failure,
    new_request_id,
    position_to_dict,
    success,
)

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("", response_model=ApiResponse)
async def list_ledger(
    position_service: PositionManagementService = Depends(get_position_service),
):
    """List ledger entries, newest first by first trade time."""
    request_id = new_request_id()
    entries = [
        position_to_dict(entry, position_service.compute_stats(entry))
        for entry in position_service.get_ledger()
    ]
    return success(request_id, {"entries": entries})


@router.get("/export", response_model=ApiResponse)
async def export_ledger(
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Export ledger entries as raw numeric records.

    Returns
    -------
    ApiResponse
        One summary per entry with its trade rows. Values are unrounded;
        formatting them for a file is up to the client.
    """
    request_id = new_request_id()
    summaries = export_rows(
        position_service.get_ledger(), stats_fn=position_service.compute_stats
    )
    return success(
        request_id,
        {"positions": [dataclass_to_dict(summary) for summary in summaries]},
    )


@router.delete("/{position_id}", response_model=ApiResponse)
async def delete_ledger_entry(
    position_id: str,
    position_service: PositionManagementService = Depends(get_position_service),
):
    """Remove a ledger entry. The active position, if any, is untouched."""
    request_id = new_request_id()
    try:
        position_service.delete_ledger_position(position_id)
    except KeyError:
        return failure(
            request_id,
            ErrorCodes.POSITION_NOT_FOUND,
            ErrorMessages.POSITION_NOT_FOUND,
            {"position_id": position_id},
        )
    return success(request_id, {"position_id": position_id})
