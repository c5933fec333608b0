"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PENDING_VERIFICATION = "pending_verification"
    PAID = "paid"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentChannel(str, Enum):
    """How the buyer pays: redirected to the gateway, or a manually-verified rail."""
    HOSTED = "hosted"
    MANUAL = "manual"


class PaymentMethod(str, Enum):
    # Hosted checkout
    CARD = "card"
    PAYPAL = "paypal"
    # Manual rails (buyer submits a transaction reference)
    ORANGE_MONEY = "orange_money"
    MTN_MOMO = "mtn_momo"
    BINANCE = "binance"

    @property
    def channel(self) -> PaymentChannel:
        if self in (PaymentMethod.CARD, PaymentMethod.PAYPAL):
            return PaymentChannel.HOSTED
        return PaymentChannel.MANUAL


class Verdict(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"


class ActorRole(str, Enum):
    BUYER = "buyer"
    VENDOR = "vendor"
    ADMIN = "admin"


class AuditAction(str, Enum):
    SET_PAYMENT_STATUS = "SET_PAYMENT_STATUS"
    SET_ORDER_STATUS = "SET_ORDER_STATUS"
    FORCE_RELEASE = "FORCE_RELEASE"
    CANCEL_AND_REFUND = "CANCEL_AND_REFUND"


CAPTURED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.COMPLETED})
CLOSED_PAYMENT_STATUSES = frozenset({PaymentStatus.FAILED, PaymentStatus.REFUNDED})
FULFILLMENT_STATUSES = frozenset(
    {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)
