"""
Parcel Server Backend: Tracking Log Schemas
============================================

What:  Request/response contracts for POST /tracking.
How:   Missing required fields are rejected by FastAPI (mapped to 400 in
       main.py); `parcel_id` shape is checked by TrackingService.
"""

from typing import Optional

from pydantic import BaseModel, Field


class TrackingLogCreate(BaseModel):
    """A tracking event posted by a rider or admin."""

    tracking_id: str = Field(description="Public tracking number of the shipment")
    parcel_id: Optional[str] = Field(default=None, description="Parcel identity, if known")
    status: str = Field(description="Status label, e.g. 'rider_assigned', 'delivered'")
    message: str = Field(description="Free-text description of the event")
    updated_by: str = Field(default="", description="Who recorded the event")


class TrackingLogCreated(BaseModel):
    success: bool = True
    inserted_id: str = Field(alias="insertedId")

    model_config = {"populate_by_name": True}
