"""
Parcel Server Backend: Stripe Payment Gateway
==============================================

What:  PaymentGateway implementation on the Stripe Python SDK.
How:   Holds an explicit `stripe.StripeClient` (no module-global api_key),
       created lazily from the configured secret key. The SDK call is
       blocking, so it runs in a worker thread via asyncio.to_thread.
Who:   Built once by the application lifespan; used by PaymentService.

Error translation:
    stripe.StripeError (card, invalid request, auth, network, rate limit)
        → PaymentGatewayError with the provider's message as detail
    No retries are attempted here; the SDK's own network retry default applies.
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

import stripe

from app.exceptions import PaymentGatewayError
from app.services.gateway_base import PaymentGateway

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """
    Stripe-backed payment gateway.

    Args:
        secret_key: Stripe secret key (sk_test_... / sk_live_...)
        client:     Pre-built StripeClient (tests pass a mock)
    """

    def __init__(self, secret_key: str = "", client: Optional[stripe.StripeClient] = None):
        self._secret_key = secret_key
        self._client = client

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            if not self._secret_key:
                raise PaymentGatewayError(detail="Stripe secret key is not configured")
            self._client = stripe.StripeClient(self._secret_key)
        return self._client

    async def create_intent(
        self,
        amount: int,
        currency: str,
        payment_method_types: Sequence[str],
    ) -> str:
        params = {
            "amount": amount,
            "currency": currency,
            "payment_method_types": list(payment_method_types),
        }
        start_time = time.perf_counter()

        try:
            intent = await asyncio.to_thread(self.client.payment_intents.create, params=params)
        except stripe.StripeError as e:
            logger.error(
                "Stripe create payment intent failed: %s (code=%s)",
                str(e),
                getattr(e, "code", None),
            )
            raise PaymentGatewayError(
                detail=e.user_message or str(e),
                context={"amount": amount, "currency": currency},
            )

        logger.info(
            "Payment intent %s created in %.0fms (amount=%d %s)",
            intent.id,
            (time.perf_counter() - start_time) * 1000,
            amount,
            currency,
        )
        return intent.client_secret
