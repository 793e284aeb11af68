"""
Parcel Server Backend: Payment Route Handlers
==============================================

What:  GET/POST /payments and POST /create-payment-intent.
How:   Delegates to PaymentService. Recording a payment also marks the
       parcel paid, in the same storage transaction.

Typical client flow:
    1. POST /create-payment-intent {amountInCents}  → {clientSecret}
    2. Client confirms the card payment with Stripe.js using clientSecret
    3. POST /payments {parcelId, email, amount, paymentMethod, transactionId}
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_payment_service
from app.schemas.common import ErrorResponse
from app.schemas.payment import (
    PaymentCreate,
    PaymentIntentCreate,
    PaymentIntentCreated,
    PaymentRecorded,
)
from app.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.get(
    "/payments",
    response_model=List[Dict[str, Any]],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List payment history, most recent first",
)
async def list_payments(
    email: Optional[str] = Query(default=None, description="Only payments made by this email"),
    service: PaymentService = Depends(get_payment_service),
) -> List[Dict[str, Any]]:
    return await service.list_payments(email=email)


@router.post(
    "/payments",
    status_code=201,
    response_model=PaymentRecorded,
    responses={
        400: {"description": "Missing fields or invalid parcel ID", "model": ErrorResponse},
        404: {"description": "Parcel not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Record a payment and mark the parcel paid",
)
async def record_payment(
    payload: PaymentCreate,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentRecorded:
    return await service.record_payment(payload)


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentCreated,
    responses={
        400: {"description": "Missing or non-integer amountInCents", "model": ErrorResponse},
        500: {"description": "Payment gateway error", "model": ErrorResponse},
    },
    summary="Create a Stripe payment intent (USD, card only)",
)
async def create_payment_intent(
    payload: PaymentIntentCreate,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentCreated:
    logger.info("Creating payment intent for %d cents", payload.amount_in_cents)
    return await service.create_payment_intent(payload.amount_in_cents)
