"""Payment Adapter application service.

Two entry points:
- open_checkout_session: asks the gateway for a hosted checkout URL for an
  already-persisted order, bounded by CHECKOUT_TIMEOUT_SECONDS.
- handle_webhook: verify -> normalize -> dedupe by event id -> hand the
  outcome to the Settlement Engine, all in one transaction, then publish.
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.errors import (
    CheckoutTimeoutError,
    OrderNotFoundError,
    SignatureError,
    TransitionConflictError,
)
from src.mp_order.domain.models import Order
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.application.schemas import WebhookAck
from src.mp_payment.domain.models import (
    CheckoutLine,
    CheckoutSession,
    CheckoutSessionRequest,
)
from src.mp_payment.domain.normalize import normalize_event
from src.mp_payment.gateway import get_gateway
from src.mp_payment.gateway.port import PaymentGateway
from src.mp_payment.infrastructure.event_log import (
    RESULT_APPLIED,
    RESULT_IGNORED,
    RESULT_REJECTED,
    PaymentEventLog,
)
from src.mp_settlement.application.service import SettlementEngine, get_settlement_engine

logger = logging.getLogger(__name__)


def checkout_idempotency_key(order: Order) -> str:
    """Stable per attempt: a timed-out call retried by the buyer reuses the key."""
    return f"checkout-{order.id}-{order.checkout_attempts}"


def build_session_request(order: Order) -> CheckoutSessionRequest:
    return CheckoutSessionRequest(
        order_id=order.id,
        payment_method=order.payment_method,
        currency=order.currency,
        lines=tuple(
            CheckoutLine(
                name=item.product_name,
                unit_amount=item.unit_price,
                quantity=item.quantity,
                image=item.product_image,
            )
            for item in order.items
        ),
        customer_email=order.customer.email,
        idempotency_key=checkout_idempotency_key(order),
    )


class PaymentService:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        engine: SettlementEngine | None = None,
        repo: OrderRepository | None = None,
        event_log: PaymentEventLog | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._gateway = gateway
        self._engine = engine
        self._repo = repo or OrderRepository()
        self._events = event_log or PaymentEventLog()
        self._timeout_s = timeout_s if timeout_s is not None else settings.CHECKOUT_TIMEOUT_SECONDS

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    @property
    def engine(self) -> SettlementEngine:
        return self._engine or get_settlement_engine()

    # ------------------------------------------------------------------
    # Hosted checkout
    # ------------------------------------------------------------------

    async def open_checkout_session(self, order: Order, db: AsyncSession) -> CheckoutSession:
        """Create a hosted session for a committed order and store its reference.

        Raises PaymentChannelError (or CheckoutTimeoutError) with the order
        left untouched, so the buyer can retry for the same order.
        """
        request = build_session_request(order)
        try:
            session = await asyncio.wait_for(
                self.gateway.create_checkout_session(request), timeout=self._timeout_s
            )
        except asyncio.TimeoutError:
            logger.error(
                "Checkout session for order %s timed out after %ss",
                order.id, self._timeout_s,
            )
            raise CheckoutTimeoutError(order.id, self._timeout_s) from None

        order.payment_reference = session.session_id
        order.checkout_url = session.url
        order.checkout_attempts += 1
        try:
            await self._repo.update_checkout(order, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Checkout session %s created for order %s (attempt %d)",
            session.session_id, order.id, order.checkout_attempts,
        )
        return session

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    async def handle_webhook(
        self, payload: bytes, signature: str, db: AsyncSession
    ) -> WebhookAck:
        try:
            event = self.gateway.construct_event(payload, signature)
        except SignatureError:
            logger.warning("Rejected webhook with invalid signature (%d bytes)", len(payload))
            raise
        logger.info("Webhook received: %s (%s)", event.id, event.type)

        outcome = normalize_event(event)
        try:
            if outcome is None:
                fresh = await self._events.record(event, RESULT_IGNORED, db)
                await db.commit()
                return WebhookAck(event_id=event.id, status="ignored" if fresh else "duplicate")

            if not await self._events.record(event, RESULT_APPLIED, db):
                await db.rollback()
                logger.info("Duplicate webhook %s for order %s, skipped", event.id, outcome.order_id)
                return WebhookAck(event_id=event.id, status="duplicate", order_id=outcome.order_id)

            try:
                result = await self.engine.apply_outcome(outcome, db)
            except (TransitionConflictError, OrderNotFoundError) as exc:
                await self._events.mark_result(event.id, RESULT_REJECTED, db)
                await db.commit()
                # Most often a capture on an order already cancelled: needs a manual refund
                logger.error(
                    "Webhook %s (%s) rejected for order %s: %s",
                    event.id, outcome.verdict.value, outcome.order_id, exc.message,
                )
                return WebhookAck(event_id=event.id, status="rejected", order_id=outcome.order_id)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        source = f"webhook:{event.id}"
        await self.engine.publish(result, source)
        return WebhookAck(
            event_id=event.id,
            status="applied" if result.changed else "unchanged",
            order_id=result.order.id,
            order_status=result.order.status.value,
            payment_status=result.order.payment_status.value,
        )


_service: PaymentService | None = None


def get_payment_service() -> PaymentService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = PaymentService()
    return _service
