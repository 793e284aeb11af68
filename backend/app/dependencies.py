"""
Parcel Server Backend: FastAPI Dependencies
============================================

What:  Providers that hand the shared collaborators and per-request
       services to route handlers via Depends().
How:   The document store and payment gateway live on `app.state`
       (set by create_app() or the lifespan); services are cheap wrappers
       built per request around them.
"""

from typing import Optional

from fastapi import Depends, Request

from app.services.gateway_base import PaymentGateway
from app.services.parcel_service import ParcelService
from app.services.payment_service import PaymentService
from app.services.store_base import DocumentStore
from app.services.tracking_service import TrackingService


def get_document_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise RuntimeError("Document store is not initialized")
    return store


def get_payment_gateway(request: Request) -> Optional[PaymentGateway]:
    return getattr(request.app.state, "payment_gateway", None)


def get_parcel_service(store: DocumentStore = Depends(get_document_store)) -> ParcelService:
    return ParcelService(store)


def get_tracking_service(store: DocumentStore = Depends(get_document_store)) -> TrackingService:
    return TrackingService(store)


def get_payment_service(
    store: DocumentStore = Depends(get_document_store),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(store, gateway)
