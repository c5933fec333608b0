"""Stripe payment gateway adapter.

Hosted checkout uses Stripe Checkout Sessions; the order id is written into
both the session and PaymentIntent metadata so ``payment_intent.*`` webhook
events resolve back to the order. Webhook bodies are verified against the
endpoint signing secret before being parsed.
"""

import asyncio
import json
import logging

import stripe

from src.mp_common.enums import PaymentMethod
from src.mp_common.errors import PaymentChannelError, SignatureError
from src.mp_payment.domain.models import (
    CheckoutSession,
    CheckoutSessionRequest,
    GatewayEvent,
)
from src.mp_payment.gateway.port import PaymentGateway

logger = logging.getLogger(__name__)

_METHOD_TYPES: dict[PaymentMethod, list[str]] = {
    PaymentMethod.CARD: ["card"],
    PaymentMethod.PAYPAL: ["paypal"],
}


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        success_url: str,
        cancel_url: str,
        tolerance_s: int = 300,
    ) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._success_url = success_url
        self._cancel_url = cancel_url
        self._tolerance_s = tolerance_s

    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSession:
        params = {
            "mode": "payment",
            "payment_method_types": _METHOD_TYPES.get(request.payment_method, ["card"]),
            "line_items": [
                {
                    "price_data": {
                        "currency": request.currency.lower(),
                        "product_data": {
                            "name": line.name,
                            **({"images": [line.image]} if line.image else {}),
                        },
                        "unit_amount": line.unit_amount,  # XAF is zero-decimal
                    },
                    "quantity": line.quantity,
                }
                for line in request.lines
            ],
            "success_url": self._success_url.format(order_id=request.order_id),
            "cancel_url": self._cancel_url.format(order_id=request.order_id),
            "metadata": {"order_id": request.order_id},
            "payment_intent_data": {"metadata": {"order_id": request.order_id}},
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            # stripe-python is synchronous; keep the event loop free
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self._api_key,
                idempotency_key=request.idempotency_key,
                **params,
            )
        except stripe.StripeError as exc:
            logger.error(
                "Stripe checkout session failed for order %s: %s (%s)",
                request.order_id, exc, type(exc).__name__,
            )
            raise PaymentChannelError(request.order_id, "Payment gateway refused the session") from exc

        return CheckoutSession(session_id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self._webhook_secret, self._tolerance_s
            )
        except UnicodeDecodeError as exc:
            raise SignatureError("Webhook body is not UTF-8") from exc
        except stripe.SignatureVerificationError as exc:
            raise SignatureError(str(exc)) from exc

        return parse_event(payload)


def parse_event(body: bytes | str) -> GatewayEvent:
    """Parse a Stripe event envelope: {id, type, data: {object: {id, metadata}}}."""
    try:
        event = json.loads(body)
        obj = event.get("data", {}).get("object", {}) or {}
        return GatewayEvent(
            id=str(event["id"]),
            type=str(event["type"]),
            object_id=obj.get("id"),
            metadata={str(k): str(v) for k, v in (obj.get("metadata") or {}).items()},
            payload=event,
        )
    except (ValueError, KeyError, AttributeError) as exc:  # UnicodeDecodeError is a ValueError
        # Signed but unparseable: treat like any unverifiable body
        raise SignatureError(f"Malformed webhook body: {exc}") from exc
