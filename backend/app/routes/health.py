"""
Parcel Server Backend: Liveness & Health Routes
================================================

What:  `GET /` returns a static confirmation string (trivial liveness check).
       `GET /health` reports database connectivity and uptime.
Who:   Load balancers, Docker health checks, humans with curl.
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app import __version__
from app.dependencies import get_document_store
from app.schemas.common import HealthResponse
from app.services.store_base import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

LIVENESS_MESSAGE = "Parcel Server is running 🚚"

_start_time = time.time()


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Liveness check",
)
async def root() -> str:
    return LIVENESS_MESSAGE


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend and its database. "
        "Always HTTP 200 so monitoring can read the payload."
    ),
)
async def health_check(store: DocumentStore = Depends(get_document_store)) -> HealthResponse:
    """
    Check the database with a lightweight ping (SELECT 1).

    The payment gateway is not contacted: Stripe has no free connectivity
    check and a failed intent already reports itself.
    """
    connected = await store.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
