"""
Parcel Server Backend: Payment Schemas
=======================================

What:  Request/response contracts for POST /payments and
       POST /create-payment-intent.
How:   Wire names are camelCase (`parcelId`, `amountInCents`, ...); the
       models accept either the alias or the Python field name.
"""

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    """A completed client-side payment to be recorded against a parcel."""

    parcel_id: str = Field(alias="parcelId", description="Identity of the paid parcel")
    email: str = Field(description="Payer email")
    amount: float = Field(description="Amount paid, in currency units")
    payment_method: str = Field(alias="paymentMethod", description="e.g. 'card'")
    transaction_id: str = Field(alias="transactionId", description="Provider transaction id")

    model_config = {"populate_by_name": True}


class PaymentRecorded(BaseModel):
    message: str = Field(default="Payment recorded and parcel marked as paid")
    inserted_id: str = Field(alias="insertedId")

    model_config = {"populate_by_name": True}


class PaymentIntentCreate(BaseModel):
    amount_in_cents: int = Field(alias="amountInCents", description="Amount in cents")

    model_config = {"populate_by_name": True}


class PaymentIntentCreated(BaseModel):
    client_secret: str = Field(alias="clientSecret")

    model_config = {"populate_by_name": True}
