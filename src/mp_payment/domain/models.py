"""Payment adapter value objects."""
from dataclasses import dataclass, field
from typing import Any

from src.mp_common.enums import PaymentMethod, Verdict


@dataclass(frozen=True)
class PaymentOutcome:
    """Normalized result handed to the Settlement Engine.

    raw_event_id is the gateway event id, used to drop replays; manual
    references have none.
    """

    order_id: str
    verdict: Verdict
    gateway_reference: str | None = None
    raw_event_id: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """A webhook event whose signature has already been verified."""

    id: str
    type: str
    object_id: str | None
    metadata: dict[str, str] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id")


@dataclass(frozen=True)
class CheckoutLine:
    name: str
    unit_amount: int
    quantity: int
    image: str | None = None


@dataclass(frozen=True)
class CheckoutSessionRequest:
    order_id: str
    payment_method: PaymentMethod
    currency: str
    lines: tuple[CheckoutLine, ...]
    customer_email: str | None
    idempotency_key: str


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str
