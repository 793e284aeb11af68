"""
Parcel Server Backend: Parcel Route Handlers
=============================================

What:  GET/POST /parcels and GET/DELETE /parcels/{parcel_id}.
How:   Extracts path/query/body values and delegates to ParcelService.

Note on identifiers:
    `parcel_id` is taken as a plain string. DELETE validates its shape
    (400 on malformed ids); GET leaves it to the store, so a malformed id
    surfaces as a 500.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from app.dependencies import get_parcel_service
from app.schemas.common import DeleteAcknowledgment, ErrorResponse, InsertAcknowledgment
from app.services.parcel_service import ParcelService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.get(
    "",
    response_model=List[Dict[str, Any]],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List parcels, newest first",
)
async def list_parcels(
    email: Optional[str] = Query(
        default=None,
        description="Only parcels whose created_by equals this email",
    ),
    service: ParcelService = Depends(get_parcel_service),
) -> List[Dict[str, Any]]:
    return await service.list_parcels(email=email)


@router.get(
    "/{parcel_id}",
    response_model=Dict[str, Any],
    responses={
        404: {"description": "Parcel not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single parcel by ID",
)
async def get_parcel(
    parcel_id: str,
    service: ParcelService = Depends(get_parcel_service),
) -> Dict[str, Any]:
    return await service.get_parcel(parcel_id)


@router.post(
    "",
    status_code=201,
    response_model=InsertAcknowledgment,
    responses={
        400: {"description": "Body is not a JSON object", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a parcel",
    description="Stores the request body verbatim as a new parcel document.",
)
async def create_parcel(
    document: Dict[str, Any] = Body(..., description="Arbitrary parcel document"),
    service: ParcelService = Depends(get_parcel_service),
) -> InsertAcknowledgment:
    return await service.create_parcel(document)


@router.delete(
    "/{parcel_id}",
    response_model=DeleteAcknowledgment,
    responses={
        400: {"description": "Invalid parcel ID", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a parcel",
)
async def delete_parcel(
    parcel_id: str,
    service: ParcelService = Depends(get_parcel_service),
) -> DeleteAcknowledgment:
    return await service.delete_parcel(parcel_id)
