"""
Parcel Server Backend: Tracking Route Handler
==============================================

What:  POST /tracking appends one tracking log entry.
"""

from fastapi import APIRouter, Depends

from app.dependencies import get_tracking_service
from app.schemas.common import ErrorResponse
from app.schemas.tracking import TrackingLogCreate, TrackingLogCreated
from app.services.tracking_service import TrackingService

router = APIRouter(tags=["Tracking"])


@router.post(
    "/tracking",
    status_code=201,
    response_model=TrackingLogCreated,
    responses={
        400: {"description": "Missing fields or invalid parcel ID", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Append a tracking log entry",
)
async def add_tracking_log(
    payload: TrackingLogCreate,
    service: TrackingService = Depends(get_tracking_service),
) -> TrackingLogCreated:
    return await service.add_log(payload)
