"""
Parcel Server Backend: Payment Service
=======================================

What:  Payment history listing, payment recording and payment intent creation.
How:   Reads/writes the `payments` and `parcels` collections of the document
       store and delegates intent creation to the PaymentGateway.
Who:   Called by the /payments and /create-payment-intent route handlers.

Recording flow (POST /payments):
    ┌────────────────────────── store.transaction() ──────────────────────────┐
    │ 1. parcels.update_one(_id, payment_status='paid')                       │
    │    └── no match → NotFoundError, nothing written                        │
    │ 2. payments.insert_one({..., status='success', paid_at, paid_at_string})│
    └──────────────── commit both, or roll both back on any error ────────────┘

Timestamps:
    paid_at         datetime; the store keeps it as a fixed-width UTC ISO-8601
                    string (see store_base), so history sorts chronologically
    paid_at_string  the same instant as `2026-01-02T03:04:05.678Z`
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.exceptions import (
    DatabaseError,
    NotFoundError,
    ParcelServerError,
    PaymentGatewayError,
    ValidationError,
)
from app.schemas.payment import PaymentCreate, PaymentIntentCreated, PaymentRecorded
from app.services.gateway_base import PaymentGateway
from app.services.store_base import ID_FIELD, PARCELS, PAYMENTS, DocumentStore, is_valid_id

logger = logging.getLogger(__name__)

CURRENCY = "usd"
PAYMENT_METHOD_TYPES = ("card",)
PAID = "paid"
SUCCESS = "success"


class PaymentService:
    """
    Payment operations.

    Args:
        store:    Document store for payment records and parcel status
        gateway:  Payment provider used for charge intents (optional for
                  callers that only read history)
    """

    def __init__(self, store: DocumentStore, gateway: Optional[PaymentGateway] = None):
        self.store = store
        self.gateway = gateway

    async def list_payments(self, email: Optional[str] = None) -> List[Dict[str, Any]]:
        """Payment records for `email` (all payers if None), most recent first."""
        query = {"email": email} if email else {}
        try:
            return await self.store.collection(PAYMENTS).find(query, sort=[("paid_at", -1)])
        except Exception as e:
            logger.error("Database error listing payments (email=%s): %s", email, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to get payments",
                context={"error_type": type(e).__name__},
            )

    async def record_payment(self, payload: PaymentCreate) -> PaymentRecorded:
        """
        Mark the parcel paid and insert the payment record as one unit.

        Raises:
            ValidationError: parcelId is not a well-formed identifier (400)
            NotFoundError:   no parcel has that identity (404)
            DatabaseError:   either write failed; neither is kept (500)
        """
        if not is_valid_id(payload.parcel_id):
            raise ValidationError(
                message="Invalid parcel ID",
                field="parcelId",
                detail=f"{payload.parcel_id!r} is not a valid parcel identifier",
            )

        now = datetime.now(timezone.utc)
        payment_doc = {
            "parcelId": payload.parcel_id,
            "email": payload.email,
            "amount": payload.amount,
            "paymentMethod": payload.payment_method,
            "transactionId": payload.transaction_id,
            "status": SUCCESS,
            # Display form, as a JavaScript client renders a Date
            "paid_at_string": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "paid_at": now,
        }

        try:
            async with self.store.transaction() as tx:
                update = await tx.collection(PARCELS).update_one(
                    {ID_FIELD: payload.parcel_id},
                    {"payment_status": PAID},
                )
                if update.matched_count == 0:
                    raise NotFoundError(resource="parcel", resource_id=payload.parcel_id)

                result = await tx.collection(PAYMENTS).insert_one(payment_doc)
        except ParcelServerError:
            raise
        except Exception as e:
            logger.error(
                "Database error recording payment for parcel %s (transaction=%s): %s",
                payload.parcel_id,
                payload.transaction_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Failed to record payment",
                detail=str(e),
                context={"parcel_id": payload.parcel_id},
            )

        logger.info(
            "Payment %s recorded for parcel %s (amount=%s, method=%s)",
            result.inserted_id,
            payload.parcel_id,
            payload.amount,
            payload.payment_method,
        )
        return PaymentRecorded(inserted_id=result.inserted_id)

    async def create_payment_intent(self, amount_in_cents: int) -> PaymentIntentCreated:
        """Create a card-only USD charge intent and return its client secret."""
        if self.gateway is None:
            raise PaymentGatewayError(detail="Payment gateway is not configured")

        try:
            client_secret = await self.gateway.create_intent(
                amount=amount_in_cents,
                currency=CURRENCY,
                payment_method_types=PAYMENT_METHOD_TYPES,
            )
        except PaymentGatewayError:
            raise
        except Exception as e:
            logger.error("Unexpected payment gateway error: %s", str(e), exc_info=True)
            raise PaymentGatewayError(detail=str(e))

        return PaymentIntentCreated(client_secret=client_secret)
