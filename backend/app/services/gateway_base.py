"""
Parcel Server Backend: Abstract Payment Gateway Interface
==========================================================

What:  Contract for the external payment provider.
How:   Concrete gateways (StripePaymentGateway) implement create_intent().
Who:   Called by PaymentService for POST /create-payment-intent.
"""

from abc import ABC, abstractmethod
from typing import Sequence


class PaymentGateway(ABC):
    """
    Abstract interface for creating provider-side charge intents.

    Contract:
        - create_intent() returns the client secret the caller needs to
          complete the charge client-side
        - Provider errors are wrapped in PaymentGatewayError
    """

    @abstractmethod
    async def create_intent(
        self,
        amount: int,
        currency: str,
        payment_method_types: Sequence[str],
    ) -> str:
        """
        Create a payment intent.

        Args:
            amount: Amount in the smallest currency unit (cents)
            currency: ISO currency code, lowercase ("usd")
            payment_method_types: Allowed payment methods (["card"])

        Returns:
            str: The intent's client secret.

        Raises:
            PaymentGatewayError: The provider rejected or failed the request.
        """
        ...
