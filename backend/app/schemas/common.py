"""
Parcel Server Backend: Shared Response Schemas
===============================================

What:  Pydantic models shared by several endpoints: write acknowledgments,
       the error envelope and the health report.
How:   Field aliases keep the wire names the frontend already consumes
       (`insertedId`, `deletedCount`).
"""

from typing import Optional

from pydantic import BaseModel, Field


class InsertAcknowledgment(BaseModel):
    """Returned by POST /parcels."""

    acknowledged: bool = Field(default=True)
    inserted_id: str = Field(alias="insertedId", description="Identity assigned by the store")

    model_config = {"populate_by_name": True}


class DeleteAcknowledgment(BaseModel):
    """Returned by DELETE /parcels/{id}; deletedCount is 0 when nothing matched."""

    acknowledged: bool = Field(default=True)
    deleted_count: int = Field(alias="deletedCount", ge=0)

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "server_error",
            "message": "Failed to delete parcel",
            "details": {"error": "connection refused"},
            "request_id": "1a2b3c4d"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
