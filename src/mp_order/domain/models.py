"""Order domain model: pure dataclasses, no SQLAlchemy dependency.

Prices are snapshotted onto OrderItem at creation and never re-read from the
catalog afterwards; settlement works only from these rows.
"""
from dataclasses import dataclass, field
from datetime import datetime

from src.mp_common.enums import (
    OrderStatus,
    PaymentChannel,
    PaymentMethod,
    PaymentStatus,
)


@dataclass(frozen=True)
class CustomerInfo:
    """Contact snapshot, captured for guest and registered buyers alike."""

    name: str
    phone: str
    address: str
    city: str
    email: str | None = None
    whatsapp: str | None = None


@dataclass(frozen=True)
class OrderItem:
    order_id: str
    product_id: str
    product_name: str
    vendor_id: str
    unit_price: int
    quantity: int
    product_image: str | None = None
    id: int | None = None

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class Order:
    id: str
    order_number: str
    vendor_id: str
    customer: CustomerInfo
    payment_method: PaymentMethod
    items: list[OrderItem] = field(default_factory=list)
    buyer_id: str | None = None  # None = guest checkout
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: str | None = None
    checkout_url: str | None = None
    checkout_attempts: int = 0
    subtotal: int = 0
    total: int = 0
    currency: str = "XAF"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def channel(self) -> PaymentChannel:
        return self.payment_method.channel

    @property
    def is_guest(self) -> bool:
        return self.buyer_id is None

    def items_subtotal(self) -> int:
        return sum(item.line_total for item in self.items)
