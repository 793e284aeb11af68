"""
Parcel Server Backend: Parcel Service
======================================

What:  Business logic for listing, fetching, creating and deleting parcels.
How:   Thin pass-through to the `parcels` collection of the document store,
       translating store failures into application exceptions.
Who:   Called by the /parcels route handlers.

Error mapping:
    list    → DatabaseError "Failed to get parcels"
    get     → NotFoundError (404) | DatabaseError "Failed to get parcel"
              (a malformed id is not pre-validated; it surfaces as 500)
    create  → DatabaseError "Failed to create parcel"
    delete  → ValidationError "Invalid parcel ID" (400, before any storage
              access) | DatabaseError "Failed to delete parcel" with detail
"""

import logging
from typing import Any, Dict, List, Optional

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.schemas.common import DeleteAcknowledgment, InsertAcknowledgment
from app.services.store_base import ID_FIELD, PARCELS, DocumentStore, is_valid_id

logger = logging.getLogger(__name__)


class ParcelService:
    """
    Parcel operations over an injected DocumentStore.

    Stateless apart from the store handle; one instance per request is cheap.
    """

    def __init__(self, store: DocumentStore):
        self.parcels = store.collection(PARCELS)

    async def list_parcels(self, email: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        All parcels, or those created by `email`, newest first.

        Query plan:
            collection = 'parcels' [AND body.created_by = :email]
            ORDER BY body.createdAt DESC
        """
        query = {"created_by": email} if email else {}
        try:
            return await self.parcels.find(query, sort=[("createdAt", -1)])
        except Exception as e:
            logger.error("Database error listing parcels (email=%s): %s", email, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to get parcels",
                context={"error_type": type(e).__name__},
            )

    async def get_parcel(self, parcel_id: str) -> Dict[str, Any]:
        try:
            parcel = await self.parcels.find_one({ID_FIELD: parcel_id})
        except Exception as e:
            logger.error("Database error fetching parcel %s: %s", parcel_id, str(e))
            raise DatabaseError(
                message="Failed to get parcel",
                context={"parcel_id": parcel_id, "error_type": type(e).__name__},
            )

        if parcel is None:
            raise NotFoundError(resource="parcel", resource_id=parcel_id)
        return parcel

    async def create_parcel(self, document: Dict[str, Any]) -> InsertAcknowledgment:
        """Store `document` verbatim; the store assigns the identity."""
        try:
            result = await self.parcels.insert_one(document)
        except Exception as e:
            logger.error("Database error creating parcel: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create parcel",
                context={"error_type": type(e).__name__},
            )

        logger.info("Parcel created: %s (created_by=%s)", result.inserted_id, document.get("created_by"))
        return InsertAcknowledgment(
            acknowledged=result.acknowledged,
            inserted_id=result.inserted_id,
        )

    async def delete_parcel(self, parcel_id: str) -> DeleteAcknowledgment:
        """
        Remove at most one parcel.

        A well-formed id that matches nothing is not an error: the
        acknowledgment carries deletedCount=0.
        """
        if not is_valid_id(parcel_id):
            raise ValidationError(
                message="Invalid parcel ID",
                field="id",
                detail=f"{parcel_id!r} is not a valid parcel identifier",
            )

        try:
            result = await self.parcels.delete_one({ID_FIELD: parcel_id})
        except Exception as e:
            logger.error("Database error deleting parcel %s: %s", parcel_id, str(e))
            raise DatabaseError(
                message="Failed to delete parcel",
                detail=str(e),
                context={"parcel_id": parcel_id},
            )

        logger.info("Parcel delete %s: deleted_count=%d", parcel_id, result.deleted_count)
        return DeleteAcknowledgment(
            acknowledged=result.acknowledged,
            deleted_count=result.deleted_count,
        )
