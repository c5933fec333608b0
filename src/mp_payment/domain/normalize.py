"""Map gateway-specific events onto PaymentOutcome."""
import logging

from src.mp_common.enums import PaymentMethod, Verdict
from src.mp_payment.domain.models import GatewayEvent, PaymentOutcome

logger = logging.getLogger(__name__)

EVENT_VERDICTS: dict[str, Verdict] = {
    "payment_intent.succeeded": Verdict.SUCCEEDED,
    "payment_intent.payment_failed": Verdict.FAILED,
}

# Shown to the buyer after a manual-rail order is recorded
VERIFICATION_MESSAGES: dict[PaymentMethod, str] = {
    PaymentMethod.ORANGE_MONEY: (
        "Your Orange Money payment will be verified within 24h. "
        "You will receive a confirmation by SMS/WhatsApp."
    ),
    PaymentMethod.MTN_MOMO: (
        "Your MTN Mobile Money payment will be verified within 24h. "
        "You will receive a confirmation by SMS/WhatsApp."
    ),
    PaymentMethod.BINANCE: (
        "Your crypto payment will be verified within 24h. "
        "You will receive a confirmation by email/WhatsApp."
    ),
}


def normalize_event(event: GatewayEvent) -> PaymentOutcome | None:
    """Return the outcome for a recognized event, None for anything to ignore."""
    verdict = EVENT_VERDICTS.get(event.type)
    if verdict is None:
        logger.info("Ignoring unhandled gateway event %s (%s)", event.id, event.type)
        return None
    if not event.order_id:
        logger.warning(
            "Gateway event %s (%s) carries no order_id metadata, ignoring",
            event.id, event.type,
        )
        return None
    return PaymentOutcome(
        order_id=event.order_id,
        verdict=verdict,
        gateway_reference=event.object_id,
        raw_event_id=event.id,
    )


def manual_outcome(order_id: str, reference: str) -> PaymentOutcome:
    """A buyer-submitted reference proves nothing until an admin checks it."""
    return PaymentOutcome(order_id=order_id, verdict=Verdict.PENDING, gateway_reference=reference)
