"""Payment gateway port (abstract interface).

Defines the contract every gateway adapter implements, so StripeGateway
(production) and FakeGateway (dev/test) are interchangeable without touching
order intake or webhook handling.
"""

from abc import ABC, abstractmethod

from src.mp_payment.domain.models import (
    CheckoutSession,
    CheckoutSessionRequest,
    GatewayEvent,
)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSession:
        """Create a hosted checkout session tied to request.order_id.

        Raises PaymentChannelError when the gateway refuses or is unreachable.
        The caller bounds the call with a timeout.
        """
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        """Verify the signature of a webhook body and parse it.

        Raises SignatureError if the signature is missing or does not verify.
        """
        ...
