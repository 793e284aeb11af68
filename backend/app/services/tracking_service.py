"""
Parcel Server Backend: Tracking Service
========================================

What:  Appends tracking log entries (append-only; never updated or deleted).
How:   Builds the entry with a server-assigned `time` and inserts it into the
       `tracking` collection. Every failure is mapped to an application
       exception so the request always gets a response.
"""

import logging
from datetime import datetime, timezone

from app.exceptions import DatabaseError, ValidationError
from app.schemas.tracking import TrackingLogCreate, TrackingLogCreated
from app.services.store_base import TRACKING, DocumentStore, is_valid_id

logger = logging.getLogger(__name__)


class TrackingService:

    def __init__(self, store: DocumentStore):
        self.tracking = store.collection(TRACKING)

    async def add_log(self, payload: TrackingLogCreate) -> TrackingLogCreated:
        if payload.parcel_id is not None and not is_valid_id(payload.parcel_id):
            raise ValidationError(
                message="Invalid parcel ID",
                field="parcel_id",
                detail=f"{payload.parcel_id!r} is not a valid parcel identifier",
            )

        entry = {
            "tracking_id": payload.tracking_id,
            "status": payload.status,
            "message": payload.message,
            "time": datetime.now(timezone.utc),
            "updated_by": payload.updated_by,
        }
        # Absent rather than null when no parcel is referenced
        if payload.parcel_id is not None:
            entry["parcel_id"] = payload.parcel_id

        try:
            result = await self.tracking.insert_one(entry)
        except Exception as e:
            logger.error(
                "Database error adding tracking log (tracking_id=%s): %s",
                payload.tracking_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Failed to add tracking log",
                context={"tracking_id": payload.tracking_id},
            )

        logger.info("Tracking %s: %s", payload.tracking_id, payload.status)
        return TrackingLogCreated(inserted_id=result.inserted_id)
