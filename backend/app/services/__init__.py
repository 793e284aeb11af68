# Services package init
"""
Parcel Server Backend: Services Layer
======================================

What:  Business logic between routes (HTTP) and the document store (persistence).
How:   Services receive a DocumentStore (and, for payments, a PaymentGateway)
       through FastAPI dependency injection and raise ParcelServerError
       subclasses that the exception handlers turn into HTTP responses.

Service Inventory:
    - DocumentStore / DocumentCollection (abstract): collection-of-documents API
    - SQLDocumentStore: DocumentStore on async SQLAlchemy (PostgreSQL, SQLite)
    - PaymentGateway (abstract): payment intent creation
    - StripePaymentGateway: PaymentGateway backed by the Stripe API
    - ParcelService: list, get, create and delete parcels
    - TrackingService: append tracking log entries
    - PaymentService: payment history, payment recording, payment intents
"""
