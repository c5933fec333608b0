"""Configurable fake payment gateway for development and testing.

Simulates the hosted checkout without any external calls and signs webhooks
with a plain HMAC-SHA256 of the body (header ``sha256=<hex>``). It can be
configured at runtime to refuse sessions or to hang, which exercises the
PaymentChannelError and timeout paths of order intake.
"""

import asyncio
import hashlib
import hmac
from uuid import uuid4

from src.mp_common.errors import PaymentChannelError, SignatureError
from src.mp_payment.domain.models import (
    CheckoutSession,
    CheckoutSessionRequest,
    GatewayEvent,
)
from src.mp_payment.gateway.port import PaymentGateway
from src.mp_payment.gateway.stripe_adapter import parse_event


def sign_payload(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = "whsec_fake") -> None:
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.delay_s: float = 0.0
        self.sessions: dict[str, CheckoutSession] = {}  # idempotency_key -> session
        self.calls: list[CheckoutSessionRequest] = []

    def configure(self, should_succeed: bool = True, delay_s: float = 0.0) -> None:
        self.should_succeed = should_succeed
        self.delay_s = delay_s

    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSession:
        self.calls.append(request)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if not self.should_succeed:
            raise PaymentChannelError(request.order_id, "Fake gateway configured to fail")
        # Same idempotency key -> same session, like the real gateway
        existing = self.sessions.get(request.idempotency_key)
        if existing is not None:
            return existing
        session_id = f"cs_fake_{uuid4().hex[:16]}"
        session = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.fake.local/pay/{session_id}",
        )
        self.sessions[request.idempotency_key] = session
        return session

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        if not signature:
            raise SignatureError("Missing signature header")
        expected = sign_payload(payload, self.webhook_secret)
        if not hmac.compare_digest(expected, signature):
            raise SignatureError()
        return parse_event(payload)
